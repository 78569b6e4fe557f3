"""
Ladder Keeper — Configuration
All tunable parameters in one place.
"""

import os
import logging
from decimal import Decimal, InvalidOperation
from dataclasses import dataclass, field, replace
from typing import Tuple

logger = logging.getLogger(__name__)

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")


@dataclass(frozen=True)
class LadderConfig:
    quantity: Decimal = Decimal("0.001")
    symbol: str = "btc-usd"
    bps_ladder: Tuple[Decimal, ...] = (Decimal("6"), Decimal("7"), Decimal("8"))
    replacement_bps: Decimal = Decimal("6")       # Top-up distance
    min_distance_bps: Decimal = Decimal("1.5")    # Cancel if closer (risk of execution)
    max_distance_bps: Decimal = Decimal("10")     # Cancel if further
    max_loops: int = 1000                         # <= 0 runs forever
    use_indicators: bool = True
    atr_change_threshold: Decimal = Decimal("2.0")  # Skip placement if ATR moves more than this
    max_atr: Decimal = Decimal("20.0")              # Skip placement above this ATR

    def __post_init__(self):
        if not self.bps_ladder:
            raise ValueError("bps_ladder must not be empty")
        if self.quantity <= 0:
            raise ValueError("quantity must be positive")
        if any(bps <= 0 for bps in self.bps_ladder) or self.replacement_bps <= 0:
            raise ValueError("ladder distances must be positive")
        if self.min_distance_bps >= self.max_distance_bps:
            raise ValueError("min_distance_bps must be < max_distance_bps")

    @property
    def rungs(self) -> int:
        return len(self.bps_ladder)


@dataclass
class TimingConfig:
    cycle_interval_sec: float = 30.0
    element_timeout_sec: float = 5.0
    poll_interval_sec: float = 0.1
    close_settle_sec: float = 0.5
    post_close_settle_sec: float = 2.0
    cancel_settle_sec: float = 0.5
    post_cancel_settle_sec: float = 2.0
    placement_delay_sec: float = 0.5
    input_settle_sec: float = 0.1
    pre_submit_sec: float = 0.2
    skip_overlapping_ticks: bool = False    # Deviation: serialize cycles


@dataclass
class VenueConfig:
    mode: str = "paper"                     # paper | bridge
    bridge_url: str = "http://127.0.0.1:8765"
    bridge_token: str = ""
    request_timeout_sec: float = 10.0
    paper_start_price: Decimal = Decimal("50000")
    paper_step_bps: Decimal = Decimal("1")
    paper_candle_ticks: int = 4
    paper_atr_period: int = 14
    paper_seed: int = 0


@dataclass
class NotificationConfig:
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    enabled: bool = True


@dataclass
class DashboardConfig:
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8080
    token: str = ""                         # Required for POST /api/start|stop


@dataclass
class BotConfig:
    ladder: LadderConfig = field(default_factory=LadderConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    venue: VenueConfig = field(default_factory=VenueConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    log_level: str = "INFO"
    log_file: str = "data/bot.log"

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Load config with environment variable overrides."""
        config = cls()

        ladder = config.ladder
        config.ladder = replace(
            ladder,
            quantity=_env_decimal("QUANTITY", ladder.quantity),
            symbol=os.getenv("SYMBOL", ladder.symbol),
            bps_ladder=_env_decimal_list("BPS_LADDER", ladder.bps_ladder),
            replacement_bps=_env_decimal("REPLACEMENT_BPS", ladder.replacement_bps),
            min_distance_bps=_env_decimal("MIN_DISTANCE_BPS", ladder.min_distance_bps),
            max_distance_bps=_env_decimal("MAX_DISTANCE_BPS", ladder.max_distance_bps),
            max_loops=int(os.getenv("MAX_LOOPS", str(ladder.max_loops))),
            use_indicators=_env_bool("USE_INDICATORS", ladder.use_indicators),
            atr_change_threshold=_env_decimal("ATR_CHANGE_THRESHOLD", ladder.atr_change_threshold),
            max_atr=_env_decimal("MAX_ATR", ladder.max_atr),
        )

        config.timing.cycle_interval_sec = float(
            os.getenv("CYCLE_INTERVAL_SEC", str(config.timing.cycle_interval_sec))
        )
        config.timing.skip_overlapping_ticks = _env_bool(
            "SKIP_OVERLAPPING_TICKS", config.timing.skip_overlapping_ticks
        )

        config.venue.mode = os.getenv("VENUE_MODE", config.venue.mode).lower()
        config.venue.bridge_url = os.getenv("BRIDGE_URL", config.venue.bridge_url)
        config.venue.bridge_token = os.getenv("BRIDGE_TOKEN", "")
        config.venue.paper_start_price = _env_decimal("PAPER_START_PRICE", config.venue.paper_start_price)
        config.venue.paper_seed = int(os.getenv("PAPER_SEED", str(config.venue.paper_seed)))

        config.notifications.telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "")
        config.notifications.telegram_chat_id = os.getenv("TELEGRAM_CHAT_ID", "")
        config.dashboard.enabled = _env_bool("DASHBOARD_ENABLED", config.dashboard.enabled)
        config.dashboard.host = os.getenv("DASHBOARD_HOST", config.dashboard.host)
        config.dashboard.port = int(os.getenv("DASHBOARD_PORT", str(config.dashboard.port)))
        config.dashboard.token = os.getenv("DASHBOARD_TOKEN", "")
        config.log_level = os.getenv("LOG_LEVEL", "INFO")
        config.log_file = os.getenv("LOG_FILE", config.log_file)

        if config.venue.mode not in ("paper", "bridge"):
            raise ValueError(f"VENUE_MODE must be 'paper' or 'bridge', got {config.venue.mode!r}")
        return config


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning(f"[BOOT] {name}={raw!r} is not a recognised boolean, keeping default {default}")
    return default


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_decimal_list(name: str, default: Tuple[Decimal, ...]) -> Tuple[Decimal, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return tuple(Decimal(part.strip()) for part in raw.split(",") if part.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a comma separated list of numbers, got {raw!r}")
