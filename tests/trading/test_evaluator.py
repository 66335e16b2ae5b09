"""Tests for the opportunity evaluator."""

import pytest
from decimal import Decimal

from autotrader.trading.config import StrategyConfig, TradingConfig
from autotrader.trading.models import Opportunity
from autotrader.trading.strategies.base import (
    ComplementConfidence,
    FixedConfidence,
    create_confidence_policy,
)
from autotrader.trading.strategies.evaluator import OpportunityEvaluator


def make_opportunity(price: str, outcome: str = "YES", complement: bool = True) -> Opportunity:
    return Opportunity(
        market_id="0xmarket",
        outcome=outcome,
        current_price=Decimal(price),
        question="Will it happen?",
        token_id="tok-yes",
        complement_outcome="NO" if complement else None,
        complement_token_id="tok-no" if complement else None,
    )


@pytest.fixture
def evaluator():
    return OpportunityEvaluator(TradingConfig())


class TestThresholds:
    """Tests for the threshold policy."""

    def test_cheap_outcome_is_bought(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.05"))
        assert decision.should_trade is True
        assert decision.edge == Decimal("0.05")
        assert decision.outcome == "YES"
        assert decision.price == Decimal("0.05")
        assert decision.token_id == "tok-yes"
        assert decision.side == "BUY"

    def test_mid_price_is_skipped(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.5"))
        assert decision.should_trade is False
        assert decision.size == Decimal("0")

    def test_expensive_outcome_buys_complement(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.95"))
        assert decision.should_trade is True
        assert decision.outcome == "NO"
        assert decision.price == Decimal("0.05")
        assert decision.token_id == "tok-no"
        assert decision.edge == Decimal("0.05")

    def test_expensive_outcome_without_complement(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.95", complement=False))
        assert decision.should_trade is False
        assert "no complementary outcome" in decision.reasoning

    def test_edge_below_minimum(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.09"))
        assert decision.should_trade is False
        assert decision.edge == Decimal("0.01")

    def test_edge_exactly_minimum(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.08"))
        assert decision.should_trade is True

    def test_untradeable_price(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0"))
        assert decision.should_trade is False
        assert "outside tradeable range" in decision.reasoning


class TestConfidence:
    """Tests for the confidence floor and policies."""

    def test_low_confidence_rejected(self):
        evaluator = OpportunityEvaluator(TradingConfig(), policy=FixedConfidence(Decimal("0.6")))
        decision = evaluator.evaluate(make_opportunity("0.05"))
        assert decision.should_trade is False
        assert decision.confidence == Decimal("0.6")

    def test_complement_policy(self):
        evaluator = OpportunityEvaluator(TradingConfig(), policy=ComplementConfidence())
        decision = evaluator.evaluate(make_opportunity("0.05"))
        assert decision.confidence == Decimal("0.95")

    def test_policy_from_config(self):
        assert create_confidence_policy(StrategyConfig()).name == "fixed"
        assert create_confidence_policy(StrategyConfig(confidence_policy="complement")).name == "complement"

    def test_fixed_confidence_validation(self):
        with pytest.raises(ValueError):
            FixedConfidence(Decimal("1.2"))


class TestSizing:
    """Tests for position sizing."""

    def test_fixed_size(self, evaluator):
        assert evaluator.evaluate(make_opportunity("0.05")).size == Decimal("10.00")

    def test_fixed_size_capped_by_risk_limit(self):
        config = TradingConfig(
            max_position_size=Decimal("100"),
            risk_limit_per_trade=Decimal("5"),
            strategy=StrategyConfig(fixed_size=Decimal("30")),
        )
        decision = OpportunityEvaluator(config).evaluate(make_opportunity("0.05"))
        assert decision.size == Decimal("5.00")

    def test_confidence_weighted_size(self):
        config = TradingConfig(strategy=StrategyConfig(fixed_size=None))
        decision = OpportunityEvaluator(config).evaluate(make_opportunity("0.05"))
        # 100 * 0.25 * 0.8
        assert decision.size == Decimal("20.00")

    def test_weighted_size_clamped_to_minimum_unit(self):
        config = TradingConfig(
            max_position_size=Decimal("2"),
            risk_limit_per_trade=Decimal("2"),
            strategy=StrategyConfig(fixed_size=None),
        )
        decision = OpportunityEvaluator(config).evaluate(make_opportunity("0.05"))
        assert decision.size == Decimal("1.00")

    @pytest.mark.parametrize("price", ["0.01", "0.03", "0.07", "0.08", "0.92", "0.95", "0.99"])
    @pytest.mark.parametrize("fixed_size", [None, Decimal("1"), Decimal("10"), Decimal("500")])
    @pytest.mark.parametrize("risk_limit", [Decimal("1"), Decimal("7.5"), Decimal("40")])
    def test_trade_size_within_limits(self, price, fixed_size, risk_limit):
        config = TradingConfig(
            max_position_size=Decimal("40"),
            risk_limit_per_trade=risk_limit,
            strategy=StrategyConfig(fixed_size=fixed_size),
        )
        decision = OpportunityEvaluator(config).evaluate(make_opportunity(price))
        assert decision.should_trade is True
        assert Decimal("0") < decision.size <= min(config.max_position_size, risk_limit)


class TestReasoning:
    """Reasoning strings are shown verbatim to operators."""

    def test_trade_reasoning(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.05"))
        assert decision.reasoning == (
            "BUY YES at 5.0%: YES at 5.0% <= buy threshold 10.0%; "
            "edge 5.0%, confidence 80.0%, size $10.00"
        )

    def test_complement_reasoning(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.95"))
        assert decision.reasoning == (
            "BUY NO at 5.0%: YES at 95.0% >= sell threshold 90.0%; "
            "edge 5.0%, confidence 80.0%, size $10.00"
        )

    def test_within_thresholds_reasoning(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.5"))
        assert decision.reasoning == (
            "YES at 50.0% within thresholds (buy <= 10.0%, sell >= 90.0%)"
        )

    def test_edge_reasoning(self, evaluator):
        decision = evaluator.evaluate(make_opportunity("0.09"))
        assert decision.reasoning == (
            "YES at 9.0% <= buy threshold 10.0%; edge 1.0% below minimum 2.0%"
        )

    def test_confidence_reasoning(self):
        evaluator = OpportunityEvaluator(TradingConfig(), policy=FixedConfidence(Decimal("0.6")))
        decision = evaluator.evaluate(make_opportunity("0.05"))
        assert decision.reasoning == (
            "YES at 5.0% <= buy threshold 10.0%; confidence 60.0% below minimum 70.0%"
        )

    def test_deterministic(self, evaluator):
        opportunity = make_opportunity("0.04")
        assert evaluator.evaluate(opportunity) == evaluator.evaluate(opportunity)
