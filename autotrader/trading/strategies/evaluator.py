"""
Opportunity Evaluator

Turns a scanned opportunity into a trade-or-skip decision using price
thresholds, a minimum edge, a confidence floor and the position-size
limits. Pure: same opportunity and config always give the same decision
and the same reasoning text.
"""

from decimal import Decimal, ROUND_DOWN
from typing import Optional
import logging

from autotrader.trading.config import TradingConfig
from autotrader.trading.models import BUY, Opportunity, TradingDecision
from autotrader.trading.strategies.base import ConfidencePolicy, create_confidence_policy

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ONE = Decimal("1")
ZERO = Decimal("0")


def _pct(value: Decimal) -> str:
    return f"{value * 100:.1f}%"


class OpportunityEvaluator:
    """
    Threshold evaluator.

    - price <= buy threshold: buy the outcome itself
    - price >= sell threshold: buy the complementary outcome at 1 - price
    - anything in between is skipped
    """

    # Venue tick range
    MIN_PRICE = Decimal("0.01")
    MAX_PRICE = Decimal("0.99")

    def __init__(self, config: TradingConfig, policy: Optional[ConfidencePolicy] = None):
        self._config = config
        self._strategy = config.strategy
        self._policy = policy or create_confidence_policy(config.strategy)

    @property
    def policy(self) -> ConfidencePolicy:
        return self._policy

    def _skip(
        self,
        opportunity: Opportunity,
        reasoning: str,
        edge: Decimal = ZERO,
        confidence: Decimal = ZERO,
    ) -> TradingDecision:
        logger.debug(f"SKIP {opportunity.market_id[:12]} {opportunity.outcome}: {reasoning}")
        return TradingDecision(
            opportunity=opportunity,
            should_trade=False,
            size=ZERO,
            side=BUY,
            reasoning=reasoning,
            outcome=opportunity.outcome,
            price=opportunity.current_price,
            token_id=opportunity.token_id,
            confidence=confidence,
            edge=edge,
        )

    def calculate_size(self, confidence: Decimal) -> Decimal:
        """
        Position size in USDC.

        Fixed size when configured, else a confidence-weighted fraction of
        max_position_size. Clamped to [min_unit_size, max_position_size],
        capped by risk_limit_per_trade, rounded down to cents.
        """
        if self._strategy.fixed_size is not None:
            raw = self._strategy.fixed_size
        else:
            raw = self._config.max_position_size * self._strategy.sizing_fraction * confidence

        size = max(raw, self._strategy.min_unit_size)
        size = min(size, self._config.max_position_size)
        size = min(size, self._config.risk_limit_per_trade)
        return size.quantize(CENT, rounding=ROUND_DOWN)

    def evaluate(self, opportunity: Opportunity) -> TradingDecision:
        strategy = self._strategy
        price = opportunity.current_price

        if price <= strategy.buy_threshold:
            edge = strategy.buy_threshold - price
            trigger = (
                f"{opportunity.outcome} at {_pct(price)} <= buy threshold "
                f"{_pct(strategy.buy_threshold)}"
            )
            target_outcome = opportunity.outcome
            target_price = price
            target_token = opportunity.token_id
        elif price >= strategy.sell_threshold:
            edge = price - strategy.sell_threshold
            trigger = (
                f"{opportunity.outcome} at {_pct(price)} >= sell threshold "
                f"{_pct(strategy.sell_threshold)}"
            )
            if opportunity.complement_outcome is None:
                return self._skip(
                    opportunity, f"{trigger}; no complementary outcome to buy", edge=edge
                )
            target_outcome = opportunity.complement_outcome
            target_price = ONE - price
            target_token = opportunity.complement_token_id
        else:
            return self._skip(
                opportunity,
                f"{opportunity.outcome} at {_pct(price)} within thresholds "
                f"(buy <= {_pct(strategy.buy_threshold)}, sell >= {_pct(strategy.sell_threshold)})",
            )

        if edge < strategy.min_edge:
            return self._skip(
                opportunity,
                f"{trigger}; edge {_pct(edge)} below minimum {_pct(strategy.min_edge)}",
                edge=edge,
            )

        if not (self.MIN_PRICE <= target_price <= self.MAX_PRICE):
            return self._skip(
                opportunity,
                f"{trigger}; {target_outcome} price {_pct(target_price)} outside tradeable range",
                edge=edge,
            )

        confidence = self._policy.score(opportunity, target_price, edge)
        confidence = min(max(confidence, ZERO), ONE)
        if confidence < self._config.min_confidence_threshold:
            return self._skip(
                opportunity,
                f"{trigger}; confidence {_pct(confidence)} below minimum "
                f"{_pct(self._config.min_confidence_threshold)}",
                edge=edge,
                confidence=confidence,
            )

        size = self.calculate_size(confidence)
        if size <= ZERO:
            return self._skip(
                opportunity, f"{trigger}; size rounds to zero", edge=edge, confidence=confidence
            )

        reasoning = (
            f"BUY {target_outcome} at {_pct(target_price)}: {trigger}; "
            f"edge {_pct(edge)}, confidence {_pct(confidence)}, size ${size:.2f}"
        )
        logger.debug(f"TRADE {opportunity.market_id[:12]}: {reasoning}")

        return TradingDecision(
            opportunity=opportunity,
            should_trade=True,
            size=size,
            side=BUY,
            reasoning=reasoning,
            outcome=target_outcome,
            price=target_price,
            token_id=target_token,
            confidence=confidence,
            edge=edge,
        )
