"""Bar interval strings ('1m', '4h', '1d', '1w') to seconds."""

_UNIT_SECONDS = {"m": 60, "h": 3600, "d": 86400, "w": 604800}


def interval_seconds(interval: str) -> int:
    """Convert Binance-style interval to seconds."""
    tf = interval.strip().lower()
    unit = tf[-1:] if tf else ""
    if unit not in _UNIT_SECONDS or not tf[:-1].isdigit() or int(tf[:-1]) <= 0:
        raise ValueError(f"Unsupported interval: {interval}")
    return int(tf[:-1]) * _UNIT_SECONDS[unit]
