"""
Load configuration from config.yaml and .env. API keys only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv

DELTA_MODES = ("dynamic", "absolute")
DELTA_SOURCES = ("candle", "trades")


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def parse_symbols(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(s).strip().upper() for s in raw if str(s).strip()]


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).strip().lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    api = data.get("api", {}) or {}
    strategy = data.get("strategy", {}) or {}
    risk = data.get("risk", {}) or {}
    execution = data.get("execution", {}) or {}
    telegram = data.get("telegram", {}) or {}
    logging_cfg = data.get("logging", {}) or {}

    use_testnet = env_bool("USE_TESTNET", api.get("use_testnet", True))
    if use_testnet:
        api_key = env("BINANCE_TESTNET_API_KEY") or env("BINANCE_API_KEY")
        api_secret = env("BINANCE_TESTNET_API_SECRET") or env("BINANCE_API_SECRET")
    else:
        api_key = env("BINANCE_MAINNET_API_KEY") or env("BINANCE_API_KEY")
        api_secret = env("BINANCE_MAINNET_API_SECRET") or env("BINANCE_API_SECRET")

    # An empty list means every tradable perpetual of the quote asset
    symbols = parse_symbols(os.getenv("SYMBOLS")) or parse_symbols(strategy.get("symbols", ["BTCUSDT"]))

    delta_mode = env("DELTA_THRESH_MODE", strategy.get("delta_thresh_mode", "dynamic")).lower()
    if delta_mode not in DELTA_MODES:
        raise ValueError(f"Unsupported delta threshold mode: {delta_mode}")
    delta_source = env("DELTA_SOURCE", strategy.get("delta_source", "candle")).lower()
    if delta_source not in DELTA_SOURCES:
        raise ValueError(f"Unsupported delta source: {delta_source}")

    return Config(
        binance_api_key=api_key,
        binance_api_secret=api_secret,
        use_testnet=use_testnet,
        symbols=symbols,
        timeframe=env("TIMEFRAME", strategy.get("timeframe", "1m")),
        # Pattern
        h_ratio=env_float("H_RATIO", strategy.get("h_ratio", 2.0)),
        b_lookback=env_int("B_LOOKBACK", strategy.get("b_lookback", 5)),
        m_ratio=env_float("M_RATIO", strategy.get("m_ratio", 0.7)),
        # Volume
        v_lookback=env_int("V_LOOKBACK", strategy.get("v_lookback", 20)),
        v_mult=env_float("V_MULT", strategy.get("v_mult", 1.25)),
        # Delta
        delta_source=delta_source,
        delta_lookback_ticks=env_int("DELTA_LOOKBACK_TICKS", strategy.get("delta_lookback_ticks", 40)),
        delta_window_seconds=env_float("DELTA_WINDOW_SECONDS", strategy.get("delta_window_seconds", 0.0)),
        delta_thresh_mode=delta_mode,
        delta_dyn_mult=env_float("DELTA_DYN_MULT", strategy.get("delta_dyn_mult", 0.8)),
        delta_thresh_abs=env_float("DELTA_THRESH_ABS", strategy.get("delta_thresh_abs", 100.0)),
        # Trend
        use_trend_filter=env_bool("USE_TREND_FILTER", strategy.get("use_trend_filter", True)),
        ema_long=env_int("EMA_LONG", strategy.get("ema_long", 30)),
        # Risk
        stop_loss_pct=env_float("STOP_LOSS_PCT", risk.get("stop_loss_pct", 0.25)),
        take_profit_pct=env_float("TAKE_PROFIT_PCT", risk.get("take_profit_pct", 0.6)),
        trailing_enabled=env_bool("TRAILING_ENABLED", risk.get("trailing_enabled", True)),
        trailing_pct=env_float("TRAILING_PCT", risk.get("trailing_pct", 0.2)),
        trailing_activation=float(risk.get("trailing_activation", 0.5)),
        max_hold_bars=env_int("MAX_HOLD_BARS", risk.get("max_hold_bars", 12)),
        max_position_pct=env_float("MAX_POSITION_PCT", risk.get("max_position_pct", 2.0)),
        max_concurrent_positions=env_int("MAX_CONCURRENT_POSITIONS", risk.get("max_concurrent_positions", 1)),
        min_notional=env_float("MIN_NOTIONAL", risk.get("min_notional", 5.0)),
        # Execution
        leverage=env_int("LEVERAGE", execution.get("leverage", 1)),
        quote_asset=env("QUOTE_ASSET", execution.get("quote_asset", "USDT")).upper(),
        history_bars=int(execution.get("history_bars", 200)),
        health_check_seconds=env_float("HEALTH_CHECK_SECONDS", execution.get("health_check_seconds", 10.0)),
        local_exits=env_bool("LOCAL_EXITS", execution.get("local_exits", True)),
        fee_bps=env_float("FEE_BPS", execution.get("fee_bps", 4.0)),
        max_trading_symbols=env_int("MAX_TRADING_SYMBOLS", execution.get("max_trading_symbols", 20)),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=logging_cfg.get("level", "INFO"),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "pvd_bot.log"),
        verbose_filters=env_bool("VERBOSE_FILTERS", logging_cfg.get("verbose_filters", False)),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "binance_api_key", "binance_api_secret", "use_testnet", "symbols", "timeframe",
        "h_ratio", "b_lookback", "m_ratio", "v_lookback", "v_mult",
        "delta_source", "delta_lookback_ticks", "delta_window_seconds",
        "delta_thresh_mode", "delta_dyn_mult", "delta_thresh_abs",
        "use_trend_filter", "ema_long",
        "stop_loss_pct", "take_profit_pct", "trailing_enabled", "trailing_pct", "trailing_activation",
        "max_hold_bars", "max_position_pct", "max_concurrent_positions", "min_notional",
        "leverage", "quote_asset", "history_bars", "health_check_seconds", "local_exits", "fee_bps",
        "max_trading_symbols", "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file", "verbose_filters",
    )

    def __init__(
        self,
        binance_api_key: str = "",
        binance_api_secret: str = "",
        use_testnet: bool = True,
        symbols: Optional[List[str]] = None,
        timeframe: str = "1m",
        h_ratio: float = 2.0,
        b_lookback: int = 5,
        m_ratio: float = 0.7,
        v_lookback: int = 20,
        v_mult: float = 1.25,
        delta_source: str = "candle",
        delta_lookback_ticks: int = 40,
        delta_window_seconds: float = 0.0,
        delta_thresh_mode: str = "dynamic",
        delta_dyn_mult: float = 0.8,
        delta_thresh_abs: float = 100.0,
        use_trend_filter: bool = True,
        ema_long: int = 30,
        stop_loss_pct: float = 0.25,
        take_profit_pct: float = 0.6,
        trailing_enabled: bool = True,
        trailing_pct: float = 0.2,
        trailing_activation: float = 0.5,
        max_hold_bars: int = 12,
        max_position_pct: float = 2.0,
        max_concurrent_positions: int = 1,
        min_notional: float = 5.0,
        leverage: int = 1,
        quote_asset: str = "USDT",
        history_bars: int = 200,
        health_check_seconds: float = 10.0,
        local_exits: bool = True,
        fee_bps: float = 4.0,
        max_trading_symbols: int = 20,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        log_file: str = "pvd_bot.log",
        verbose_filters: bool = False,
    ):
        object.__setattr__(self, "binance_api_key", binance_api_key)
        object.__setattr__(self, "binance_api_secret", binance_api_secret)
        object.__setattr__(self, "use_testnet", use_testnet)
        object.__setattr__(self, "symbols", tuple(symbols) if symbols is not None else ("BTCUSDT",))
        object.__setattr__(self, "timeframe", timeframe)
        object.__setattr__(self, "h_ratio", h_ratio)
        object.__setattr__(self, "b_lookback", b_lookback)
        object.__setattr__(self, "m_ratio", m_ratio)
        object.__setattr__(self, "v_lookback", v_lookback)
        object.__setattr__(self, "v_mult", v_mult)
        object.__setattr__(self, "delta_source", delta_source)
        object.__setattr__(self, "delta_lookback_ticks", delta_lookback_ticks)
        object.__setattr__(self, "delta_window_seconds", delta_window_seconds)
        object.__setattr__(self, "delta_thresh_mode", delta_thresh_mode)
        object.__setattr__(self, "delta_dyn_mult", delta_dyn_mult)
        object.__setattr__(self, "delta_thresh_abs", delta_thresh_abs)
        object.__setattr__(self, "use_trend_filter", use_trend_filter)
        object.__setattr__(self, "ema_long", ema_long)
        object.__setattr__(self, "stop_loss_pct", stop_loss_pct)
        object.__setattr__(self, "take_profit_pct", take_profit_pct)
        object.__setattr__(self, "trailing_enabled", trailing_enabled)
        object.__setattr__(self, "trailing_pct", trailing_pct)
        object.__setattr__(self, "trailing_activation", trailing_activation)
        object.__setattr__(self, "max_hold_bars", max_hold_bars)
        object.__setattr__(self, "max_position_pct", max_position_pct)
        object.__setattr__(self, "max_concurrent_positions", max_concurrent_positions)
        object.__setattr__(self, "min_notional", min_notional)
        object.__setattr__(self, "leverage", max(1, leverage))
        object.__setattr__(self, "quote_asset", quote_asset)
        object.__setattr__(self, "history_bars", history_bars)
        object.__setattr__(self, "health_check_seconds", health_check_seconds)
        object.__setattr__(self, "local_exits", local_exits)
        object.__setattr__(self, "fee_bps", fee_bps)
        object.__setattr__(self, "max_trading_symbols", max_trading_symbols)
        object.__setattr__(self, "telegram_bot_token", telegram_bot_token)
        object.__setattr__(self, "telegram_chat_id", telegram_chat_id)
        object.__setattr__(self, "log_level", log_level)
        object.__setattr__(self, "log_dir", Path(log_dir) if log_dir else Path("logs"))
        object.__setattr__(self, "log_file", log_file)
        object.__setattr__(self, "verbose_filters", verbose_filters)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Config is immutable (tried to set {name})")

    def replace(self, **changes: Any) -> "Config":
        """Copy with some options changed (e.g. --symbols on the CLI)."""
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(changes)
        return Config(**values)
