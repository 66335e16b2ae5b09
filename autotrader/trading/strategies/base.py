"""
Confidence policies

A confidence policy scores how much the evaluator should trust a
threshold signal. Policies are pluggable; the evaluator only requires a
score between 0 and 1.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from autotrader.trading.config import StrategyConfig
from autotrader.trading.models import Opportunity


class ConfidencePolicy(ABC):
    """Base class for confidence scoring."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def score(self, opportunity: Opportunity, target_price: Decimal, edge: Decimal) -> Decimal:
        """
        Score a candidate trade.

        Args:
            opportunity: The scanned opportunity
            target_price: Price of the outcome that would be bought
            edge: Distance past the triggering threshold

        Returns:
            Confidence between 0 and 1
        """
        pass


class FixedConfidence(ConfidencePolicy):
    """Same confidence for every signal."""

    def __init__(self, value: Decimal = Decimal("0.8")):
        if not (Decimal("0") <= value <= Decimal("1")):
            raise ValueError(f"Confidence must be 0-1: {value}")
        self._value = value

    @property
    def name(self) -> str:
        return "fixed"

    def score(self, opportunity: Opportunity, target_price: Decimal, edge: Decimal) -> Decimal:
        return self._value


class ComplementConfidence(ConfidencePolicy):
    """
    Confidence read off the price: 1 - target price, the market's implied
    probability of the complementary outcome.
    """

    @property
    def name(self) -> str:
        return "complement"

    def score(self, opportunity: Opportunity, target_price: Decimal, edge: Decimal) -> Decimal:
        return Decimal("1") - target_price


def create_confidence_policy(config: StrategyConfig) -> ConfidencePolicy:
    """Build the policy named in the strategy config."""
    if config.confidence_policy == "complement":
        return ComplementConfidence()
    return FixedConfidence(config.default_confidence)
