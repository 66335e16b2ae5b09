"""
Typed response schemas for the Polymarket endpoints.

Each remote endpoint gets one schema. All field-name aliasing and
JSON-in-string decoding happens here, so the trading core only ever sees
normalized values.
"""

from decimal import Decimal
from typing import ClassVar, List, Optional
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _decode_json_list(value):
    """Gamma encodes list fields as JSON strings ("[\"Yes\", \"No\"]")."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError(f"Not a JSON list: {value!r}")
    if not isinstance(value, list):
        raise ValueError(f"Expected a list, got {type(value).__name__}")
    return value


class GammaMarket(BaseModel):
    """Market as returned by gamma-api /markets."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    condition_id: str = Field(alias="conditionId")
    question: str = ""
    active: bool = True
    closed: bool = False
    neg_risk: bool = Field(default=False, alias="negRisk")
    outcomes: List[str] = Field(default_factory=list)
    outcome_prices: List[Decimal] = Field(default_factory=list, alias="outcomePrices")
    clob_token_ids: List[str] = Field(default_factory=list, alias="clobTokenIds")
    volume: Optional[Decimal] = None
    end_date: Optional[str] = Field(default=None, alias="endDate")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)

    @field_validator("outcomes", "outcome_prices", "clob_token_ids", mode="before")
    @classmethod
    def decode_json_lists(cls, v):
        return _decode_json_list(v)

    @field_validator("neg_risk", "active", "closed", mode="before")
    @classmethod
    def none_is_false(cls, v):
        return bool(v) if v is not None else False

    @property
    def is_tradeable(self) -> bool:
        return self.active and not self.closed

    @property
    def is_binary(self) -> bool:
        return len(self.outcomes) == 2

    def token_for(self, outcome: str) -> Optional[str]:
        """Resolve the CLOB token id for an outcome label (case-insensitive)."""
        for index, label in enumerate(self.outcomes):
            if label.upper() == outcome.upper() and index < len(self.clob_token_ids):
                return self.clob_token_ids[index]
        return None


class DataApiPosition(BaseModel):
    """Holding as returned by data-api /positions."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    asset: Optional[str] = None
    condition_id: Optional[str] = Field(default=None, alias="conditionId")
    size: Decimal
    avg_price: Decimal = Field(default=Decimal("0"), alias="avgPrice")
    cur_price: Optional[Decimal] = Field(default=None, alias="curPrice")
    cash_pnl: Optional[Decimal] = Field(default=None, alias="cashPnl")
    title: str = ""
    outcome: str = ""
    outcome_index: Optional[int] = Field(default=None, alias="outcomeIndex")
    negative_risk: bool = Field(default=False, alias="negativeRisk")

    @field_validator("condition_id", "asset", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        return v or None

    @field_validator("negative_risk", mode="before")
    @classmethod
    def none_is_false(cls, v):
        return bool(v) if v is not None else False


class ClobToken(BaseModel):
    """Outcome token inside a CLOB market."""

    model_config = ConfigDict(extra="ignore")

    token_id: str
    outcome: str
    price: Optional[Decimal] = None
    winner: bool = False


class ClobMarket(BaseModel):
    """Market as returned by clob /markets/{condition_id}."""

    model_config = ConfigDict(extra="ignore")

    condition_id: str
    question: str = ""
    closed: bool = False
    neg_risk: bool = False
    tokens: List[ClobToken] = Field(default_factory=list)

    @field_validator("neg_risk", "closed", mode="before")
    @classmethod
    def none_is_false(cls, v):
        return bool(v) if v is not None else False

    @property
    def winning_token(self) -> Optional[ClobToken]:
        """Winning token once the market has resolved, else None."""
        if not self.closed:
            return None
        for token in self.tokens:
            if token.winner:
                return token
        return None

    def outcome_index(self, outcome: str) -> Optional[int]:
        for index, token in enumerate(self.tokens):
            if token.outcome.upper() == outcome.upper():
                return index
        return None


class BalanceAllowance(BaseModel):
    """Collateral balance from clob /balance-allowance, in 6-decimal base units."""

    model_config = ConfigDict(extra="ignore")

    balance: Decimal = Decimal("0")

    USDC_DECIMALS: ClassVar[int] = 6

    @property
    def usdc(self) -> Decimal:
        return self.balance / (Decimal(10) ** self.USDC_DECIMALS)


class OrderPostResponse(BaseModel):
    """Response of clob POST /order."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = True
    order_id: Optional[str] = Field(default=None, alias="orderID")
    error_msg: Optional[str] = Field(default=None, alias="errorMsg")
    status: Optional[str] = None

    @field_validator("order_id", "error_msg", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        return v or None

    @property
    def accepted(self) -> bool:
        return self.success and self.order_id is not None and not self.error_msg


class OrderBookLevel(BaseModel):
    price: Decimal
    size: Decimal


class OrderBookSnapshot(BaseModel):
    """Normalized order book for one token."""

    token_id: str
    bids: List[OrderBookLevel] = Field(default_factory=list)
    asks: List[OrderBookLevel] = Field(default_factory=list)

    @property
    def best_bid(self) -> Optional[Decimal]:
        return max((level.price for level in self.bids), default=None)

    @property
    def best_ask(self) -> Optional[Decimal]:
        return min((level.price for level in self.asks), default=None)

    @property
    def mid_price(self) -> Optional[Decimal]:
        if self.best_bid is None or self.best_ask is None:
            return None
        return (self.best_bid + self.best_ask) / 2
