"""
Value types shared by the trading components.

All types are frozen dataclasses. Components exchange these by value;
no component holds a mutable reference into another component's state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


YES = "YES"
NO = "NO"
BUY = "BUY"
SELL = "SELL"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Opportunity:
    """
    A candidate (market, outcome, price) tuple from one scan.

    For binary markets the complementary outcome and its token are
    carried along so that an expensive outcome can be traded through
    its cheap complement.
    """
    market_id: str
    outcome: str
    current_price: Decimal
    question: str
    token_id: Optional[str] = None
    complement_outcome: Optional[str] = None
    complement_token_id: Optional[str] = None
    neg_risk: bool = False

    def __post_init__(self) -> None:
        if not (Decimal("0") <= self.current_price <= Decimal("1")):
            raise ValueError(f"current_price must be 0-1: {self.current_price}")

    def __repr__(self) -> str:
        return f"Opportunity({self.outcome}@{self.current_price} in {self.market_id[:12]})"


@dataclass(frozen=True, slots=True)
class TradingDecision:
    """
    Evaluator output for one opportunity.

    outcome/token_id/price describe the order that would be placed, which
    may be the opportunity's complement rather than the opportunity itself.
    """
    opportunity: Opportunity
    should_trade: bool
    size: Decimal
    side: str
    reasoning: str
    outcome: str
    price: Decimal
    token_id: Optional[str] = None
    confidence: Decimal = Decimal("0")
    edge: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if self.should_trade and self.size <= Decimal("0"):
            raise ValueError(f"A trade decision needs a positive size: {self.size}")
        if self.side not in (BUY, SELL):
            raise ValueError(f"Invalid side: {self.side}")

    @property
    def market_id(self) -> str:
        return self.opportunity.market_id

    def __repr__(self) -> str:
        if self.should_trade:
            return (
                f"TradingDecision(TRADE {self.side} {self.outcome} ${self.size} "
                f"@ {self.price}, edge={self.edge})"
            )
        return f"TradingDecision(SKIP: {self.reasoning})"


@dataclass(frozen=True, slots=True)
class OrderRequest:
    """Explicit order parameters. size is in USDC, not shares."""
    token_id: str
    side: str
    price: Decimal
    size: Decimal
    market_id: Optional[str] = None
    outcome: Optional[str] = None
    order_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PositionRecord:
    """One holding as reported by the venue."""
    market_condition_id: Optional[str]
    token_id: Optional[str]
    outcome: str
    size: Decimal
    avg_price: Decimal
    current_price: Optional[Decimal] = None
    pnl: Optional[Decimal] = None
    question: str = ""
    outcome_index: Optional[int] = None
    neg_risk: bool = False

    @property
    def key(self) -> Optional[str]:
        """Map key: condition id, falling back to token id."""
        return self.market_condition_id or self.token_id

    @property
    def cost_basis(self) -> Decimal:
        return self.size * self.avg_price

    @property
    def market_value(self) -> Decimal:
        price = self.current_price if self.current_price is not None else self.avg_price
        return self.size * price


@dataclass(frozen=True, slots=True)
class BalanceSnapshot:
    """Collateral balance at a point in time."""
    usdc_balance: Decimal
    address: Optional[str]
    fetched_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, slots=True)
class BalanceCheck:
    """Answer to "is there enough balance for this amount"."""
    has_enough_balance: bool
    usdc_balance: Decimal
    required: Decimal
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """
    Result of a trade attempt, including any deposit-and-retry step.
    """
    success: bool
    order_id: Optional[str]
    error: Optional[str]
    price: Optional[Decimal] = None
    size: Optional[Decimal] = None
    deposit_tx_hash: Optional[str] = None
    retried: bool = False
    timestamp: datetime = field(default_factory=_utcnow)

    def __repr__(self) -> str:
        if self.success:
            suffix = " after deposit" if self.retried else ""
            return f"ExecutionResult(OK: ${self.size}@{self.price}, order={self.order_id}{suffix})"
        return f"ExecutionResult(FAILED: {self.error})"


@dataclass(frozen=True, slots=True)
class RedemptionResult:
    """Outcome of one redemption attempt."""
    market_question: str
    condition_id: str
    amount_redeemed: Decimal
    tx_hash: Optional[str]
    success: bool
    error: Optional[str] = None

    def __repr__(self) -> str:
        if self.success:
            return f"RedemptionResult(OK: ${self.amount_redeemed} from {self.condition_id[:12]}, tx={self.tx_hash})"
        return f"RedemptionResult(FAILED {self.condition_id[:12]}: {self.error})"


USDC_DECIMALS = 6


def to_base_units(amount: Decimal) -> int:
    """USDC (or share) amount to 6-decimal integer units."""
    return int(amount * (Decimal(10) ** USDC_DECIMALS))
