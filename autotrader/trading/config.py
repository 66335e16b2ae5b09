"""
Autonomous Trader Configuration

Validated, immutable configuration for the trading controller and its
remote collaborators.

All monetary values use Decimal for precision.
All configs are frozen (immutable) and validated on construction.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os


class ConfigurationError(ValueError):
    """Raised when configuration values are missing or invalid."""
    pass


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_decimal(env: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ConfigurationError(f"{name} must be a number: {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer: {raw!r}")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number: {raw!r}")


@dataclass(frozen=True, slots=True)
class TradingHours:
    """
    Trading-hours window.

    Trading is allowed when start_hour <= hour < end_hour in the given
    timezone. A window with start_hour > end_hour wraps past midnight.
    """
    start_hour: int
    end_hour: int
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if not (0 <= self.start_hour <= 23):
            raise ConfigurationError(f"start_hour must be 0-23: {self.start_hour}")
        if not (1 <= self.end_hour <= 24):
            raise ConfigurationError(f"end_hour must be 1-24: {self.end_hour}")
        if self.start_hour == self.end_hour:
            raise ConfigurationError(
                f"Trading window is empty: {self.start_hour}-{self.end_hour}"
            )
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown timezone: {self.timezone}")

    def contains(self, moment: datetime) -> bool:
        """Check whether an aware datetime falls inside the window."""
        hour = moment.astimezone(ZoneInfo(self.timezone)).hour
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour

    def __str__(self) -> str:
        return f"{self.start_hour:02d}:00-{self.end_hour:02d}:00 {self.timezone}"


@dataclass(frozen=True, slots=True)
class StrategyConfig:
    """
    Threshold strategy parameters.

    Buy an outcome priced at or below buy_threshold, or buy the complement
    of an outcome priced at or above sell_threshold.
    """
    buy_threshold: Decimal = Decimal("0.10")
    sell_threshold: Decimal = Decimal("0.90")
    min_edge: Decimal = Decimal("0.02")
    fixed_size: Optional[Decimal] = Decimal("10")   # None = confidence-weighted sizing
    sizing_fraction: Decimal = Decimal("0.25")      # Fraction of max size at 100% confidence
    min_unit_size: Decimal = Decimal("1")           # Venue minimum order value
    confidence_policy: str = "fixed"                # fixed | complement
    default_confidence: Decimal = Decimal("0.8")

    def __post_init__(self) -> None:
        if not (Decimal("0") < self.buy_threshold < Decimal("1")):
            raise ConfigurationError(f"buy_threshold must be between 0 and 1: {self.buy_threshold}")
        if not (Decimal("0") < self.sell_threshold < Decimal("1")):
            raise ConfigurationError(f"sell_threshold must be between 0 and 1: {self.sell_threshold}")
        if self.buy_threshold >= self.sell_threshold:
            raise ConfigurationError(
                f"buy_threshold must be below sell_threshold: "
                f"{self.buy_threshold} >= {self.sell_threshold}"
            )
        if self.min_edge < Decimal("0"):
            raise ConfigurationError(f"min_edge must be non-negative: {self.min_edge}")
        if self.fixed_size is not None and self.fixed_size <= Decimal("0"):
            raise ConfigurationError(f"fixed_size must be positive: {self.fixed_size}")
        if not (Decimal("0") < self.sizing_fraction <= Decimal("1")):
            raise ConfigurationError(f"sizing_fraction must be 0-1: {self.sizing_fraction}")
        if self.min_unit_size <= Decimal("0"):
            raise ConfigurationError(f"min_unit_size must be positive: {self.min_unit_size}")
        if self.confidence_policy not in ("fixed", "complement"):
            raise ConfigurationError(f"Unknown confidence_policy: {self.confidence_policy}")
        if not (Decimal("0") <= self.default_confidence <= Decimal("1")):
            raise ConfigurationError(f"default_confidence must be 0-1: {self.default_confidence}")


@dataclass(frozen=True, slots=True)
class ExecutionConfig:
    """Order execution and deposit-retry settings."""
    order_type: str = "GTC"
    min_order_value: Decimal = Decimal("1")         # $1 venue minimum
    deposit_buffer: Decimal = Decimal("2")          # Extra USDC moved on deposit
    retry_delay_seconds: float = 5.0                # Wait for deposit to bridge

    def __post_init__(self) -> None:
        if self.order_type not in ("GTC", "FOK", "GTD", "FAK"):
            raise ConfigurationError(f"Unknown order_type: {self.order_type}")
        if self.min_order_value <= Decimal("0"):
            raise ConfigurationError(f"min_order_value must be positive: {self.min_order_value}")
        if self.deposit_buffer < Decimal("0"):
            raise ConfigurationError(f"deposit_buffer must be non-negative: {self.deposit_buffer}")
        if self.retry_delay_seconds < 0:
            raise ConfigurationError(f"retry_delay_seconds must be non-negative: {self.retry_delay_seconds}")


@dataclass(frozen=True, slots=True)
class RedemptionConfig:
    """Automatic redemption of resolved winning positions."""
    enabled: bool = True
    interval_seconds: float = 1800.0                # 30 minutes

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ConfigurationError(f"interval_seconds must be positive: {self.interval_seconds}")


@dataclass(frozen=True, slots=True)
class TradingConfig:
    """
    Complete controller configuration.

    Immutable for the lifetime of a controller instance.
    """
    unsupervised_mode: bool = False
    max_position_size: Decimal = Decimal("100")
    min_confidence_threshold: Decimal = Decimal("0.7")
    max_daily_trades: int = 10
    max_open_positions: int = 20
    risk_limit_per_trade: Decimal = Decimal("50")
    trading_hours: Optional[TradingHours] = None
    scan_interval_seconds: float = 60.0
    balance_cache_seconds: float = 5.0
    market_ids: Tuple[str, ...] = ()                # Empty = scan all active markets
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    redemption: RedemptionConfig = field(default_factory=RedemptionConfig)

    def __post_init__(self) -> None:
        """Validate risk limits against each other."""
        if not (Decimal("0") <= self.min_confidence_threshold <= Decimal("1")):
            raise ConfigurationError(
                f"min_confidence_threshold must be 0-1: {self.min_confidence_threshold}"
            )
        if self.max_position_size <= Decimal("0"):
            raise ConfigurationError(f"max_position_size must be positive: {self.max_position_size}")
        if self.max_daily_trades <= 0:
            raise ConfigurationError(f"max_daily_trades must be positive: {self.max_daily_trades}")
        if self.max_open_positions <= 0:
            raise ConfigurationError(f"max_open_positions must be positive: {self.max_open_positions}")
        if self.risk_limit_per_trade <= Decimal("0"):
            raise ConfigurationError(f"risk_limit_per_trade must be positive: {self.risk_limit_per_trade}")
        if self.risk_limit_per_trade > self.max_position_size:
            raise ConfigurationError(
                f"risk_limit_per_trade cannot exceed max_position_size: "
                f"{self.risk_limit_per_trade} > {self.max_position_size}"
            )
        if self.strategy.min_unit_size > self.risk_limit_per_trade:
            raise ConfigurationError(
                f"min_unit_size cannot exceed risk_limit_per_trade: "
                f"{self.strategy.min_unit_size} > {self.risk_limit_per_trade}"
            )
        if self.scan_interval_seconds <= 0:
            raise ConfigurationError(f"scan_interval_seconds must be positive: {self.scan_interval_seconds}")
        if self.balance_cache_seconds < 0:
            raise ConfigurationError(f"balance_cache_seconds must be non-negative: {self.balance_cache_seconds}")

    @property
    def mode(self) -> str:
        return "UNSUPERVISED" if self.unsupervised_mode else "SUPERVISED"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "TradingConfig":
        """Load configuration from environment variables."""
        env = os.environ if env is None else env

        trading_hours = None
        if env.get("TRADING_HOURS_START") or env.get("TRADING_HOURS_END"):
            trading_hours = TradingHours(
                start_hour=_env_int(env, "TRADING_HOURS_START", 0),
                end_hour=_env_int(env, "TRADING_HOURS_END", 24),
                timezone=env.get("TRADING_HOURS_TIMEZONE") or "UTC",
            )

        fixed_size: Optional[Decimal] = _env_decimal(env, "FIXED_POSITION_SIZE", Decimal("10"))
        if fixed_size == Decimal("0"):
            fixed_size = None

        strategy = StrategyConfig(
            buy_threshold=_env_decimal(env, "BUY_THRESHOLD", Decimal("0.10")),
            sell_threshold=_env_decimal(env, "SELL_THRESHOLD", Decimal("0.90")),
            min_edge=_env_decimal(env, "MIN_EDGE", Decimal("0.02")),
            fixed_size=fixed_size,
            confidence_policy=(env.get("CONFIDENCE_POLICY") or "fixed").strip().lower(),
        )

        market_ids = tuple(
            m.strip() for m in (env.get("MARKET_IDS") or "").split(",") if m.strip()
        )

        return cls(
            unsupervised_mode=_env_bool(env, "UNSUPERVISED_MODE", False),
            max_position_size=_env_decimal(env, "MAX_POSITION_SIZE", Decimal("100")),
            min_confidence_threshold=_env_decimal(env, "MIN_CONFIDENCE_THRESHOLD", Decimal("0.7")),
            max_daily_trades=_env_int(env, "MAX_DAILY_TRADES", 10),
            max_open_positions=_env_int(env, "MAX_OPEN_POSITIONS", 20),
            risk_limit_per_trade=_env_decimal(env, "RISK_LIMIT_PER_TRADE", Decimal("50")),
            trading_hours=trading_hours,
            scan_interval_seconds=_env_float(env, "SCAN_INTERVAL_SECONDS", 60.0),
            market_ids=market_ids,
            strategy=strategy,
            execution=ExecutionConfig(
                order_type=(env.get("ORDER_TYPE") or "GTC").strip().upper(),
            ),
            redemption=RedemptionConfig(
                enabled=_env_bool(env, "AUTO_REDEMPTION", True),
                interval_seconds=_env_float(env, "REDEMPTION_INTERVAL_SECONDS", 1800.0),
            ),
        )


@dataclass(frozen=True, slots=True)
class VenueSettings:
    """
    Endpoints and credentials for the venue and the settlement chain.

    The private key is never included in repr().
    """
    private_key: str = field(repr=False)
    proxy_address: Optional[str] = None             # Funder wallet holding venue collateral
    signature_type: int = 1                         # 0 = EOA, 1 = Magic/email proxy, 2 = browser proxy
    chain_id: int = 137                             # Polygon mainnet
    clob_url: str = "https://clob.polymarket.com"
    gamma_url: str = "https://gamma-api.polymarket.com"
    data_api_url: str = "https://data-api.polymarket.com"
    rpc_url: str = "https://polygon-rpc.com"
    request_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.private_key:
            raise ConfigurationError("POLYMARKET_PRIVATE_KEY is required")
        if self.signature_type not in (0, 1, 2):
            raise ConfigurationError(f"signature_type must be 0, 1 or 2: {self.signature_type}")
        if self.signature_type != 0 and not self.proxy_address:
            raise ConfigurationError("POLYMARKET_PROXY_ADDRESS is required for proxy signature types")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "VenueSettings":
        """Load endpoints and credentials from environment variables."""
        env = os.environ if env is None else env
        return cls(
            private_key=env.get("POLYMARKET_PRIVATE_KEY") or "",
            proxy_address=env.get("POLYMARKET_PROXY_ADDRESS") or None,
            signature_type=_env_int(env, "POLYMARKET_SIGNATURE_TYPE", 1),
            chain_id=_env_int(env, "CHAIN_ID", 137),
            clob_url=env.get("CLOB_API_URL") or "https://clob.polymarket.com",
            gamma_url=env.get("GAMMA_API_URL") or "https://gamma-api.polymarket.com",
            data_api_url=env.get("DATA_API_URL") or "https://data-api.polymarket.com",
            rpc_url=env.get("POLYGON_RPC_URL") or "https://polygon-rpc.com",
        )


def get_default_config() -> TradingConfig:
    """Get default configuration (supervised, $10 test orders)."""
    return TradingConfig()


def get_conservative_config() -> TradingConfig:
    """Get conservative configuration for a first unsupervised run."""
    return TradingConfig(
        unsupervised_mode=True,
        max_position_size=Decimal("25"),
        min_confidence_threshold=Decimal("0.8"),
        max_daily_trades=3,
        max_open_positions=5,
        risk_limit_per_trade=Decimal("10"),
        strategy=StrategyConfig(
            buy_threshold=Decimal("0.05"),
            sell_threshold=Decimal("0.95"),
            min_edge=Decimal("0.02"),
            fixed_size=Decimal("5"),
        ),
    )
