"""Tests for the trade executor."""

import pytest
import asyncio
from decimal import Decimal

from autotrader.trading.config import ExecutionConfig
from autotrader.trading.execution.executor import TradeExecutor, is_balance_error
from autotrader.trading.models import Opportunity, OrderRequest, TradingDecision
from autotrader.trading.tracking.balance import BalanceTracker
from tests.mocks.mock_polymarket_client import (
    MockClob,
    MockGamma,
    MockSettlement,
    RecordingSleep,
    make_gamma_market,
)


# Helper to run async tests
def run_async(coro):
    """Run async coroutine in sync test."""
    return asyncio.run(coro)


BALANCE_ERROR = "not enough balance / allowance"


def make_decision(
    size: str = "10",
    price: str = "0.05",
    token_id="0xaaa-yes",
    should_trade: bool = True,
) -> TradingDecision:
    opportunity = Opportunity(
        market_id="0xaaa",
        outcome="YES",
        current_price=Decimal(price),
        question="Will it happen?",
        token_id=token_id,
    )
    return TradingDecision(
        opportunity=opportunity,
        should_trade=should_trade,
        size=Decimal(size) if should_trade else Decimal("0"),
        side="BUY",
        reasoning="test",
        outcome="YES",
        price=Decimal(price),
        token_id=token_id,
    )


@pytest.fixture
def clob():
    return MockClob()


@pytest.fixture
def settlement():
    return MockSettlement()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def executor(clob, settlement, sleep):
    return TradeExecutor(clob, settlement=settlement, sleep=sleep)


class TestSubmit:
    """Happy path and order construction."""

    def test_successful_trade(self, executor, clob, settlement, sleep):
        result = run_async(executor.execute_trade(make_decision()))
        assert result.success is True
        assert result.order_id == "order-1"
        assert result.retried is False
        assert clob.submit_count == 1
        assert settlement.deposits == []
        assert sleep.delays == []

    def test_order_shape(self, executor, clob):
        run_async(executor.execute_trade(make_decision(size="10", price="0.03")))
        order = clob.created_orders[0]
        assert order["token_id"] == "0xaaa-yes"
        assert order["side"] == "BUY"
        assert order["price"] == Decimal("0.03")
        # 10 / 0.03 rounded down to 0.01 shares
        assert order["shares"] == Decimal("333.33")
        assert clob.submitted[0][1] == "GTC"

    def test_order_type_override(self, executor, clob):
        request = OrderRequest(
            token_id="tok", side="BUY", price=Decimal("0.5"), size=Decimal("5"), order_type="FOK"
        )
        run_async(executor.place_order(request))
        assert clob.submitted[0][1] == "FOK"

    def test_skip_decision_rejected(self, executor, clob):
        result = run_async(executor.execute_trade(make_decision(should_trade=False)))
        assert result.success is False
        assert clob.submit_count == 0

    def test_success_invalidates_balance(self, clob, settlement, sleep):
        balance = BalanceTracker(clob)
        executor = TradeExecutor(clob, settlement=settlement, balance_tracker=balance, sleep=sleep)
        run_async(balance.get_balance())
        run_async(executor.execute_trade(make_decision()))
        assert balance.snapshot is None


class TestValidation:
    """Order validation."""

    @pytest.mark.parametrize("price", ["0.005", "0.995"])
    def test_price_out_of_range(self, executor, clob, price):
        result = run_async(executor.execute_trade(make_decision(price=price)))
        assert result.success is False
        assert "Price" in result.error
        assert clob.submit_count == 0

    def test_below_minimum_order_value(self, executor, clob):
        result = run_async(executor.execute_trade(make_decision(size="0.5")))
        assert result.success is False
        assert "below minimum" in result.error

    def test_token_resolved_from_gamma(self, clob, settlement, sleep):
        gamma = MockGamma([make_gamma_market("0xaaa")])
        executor = TradeExecutor(clob, settlement=settlement, market_data=gamma, sleep=sleep)
        result = run_async(executor.execute_trade(make_decision(token_id=None)))
        assert result.success is True
        assert clob.created_orders[0]["token_id"] == "0xaaa-yes"

    def test_missing_token(self, executor, clob):
        result = run_async(executor.execute_trade(make_decision(token_id=None)))
        assert result.success is False
        assert "No token id" in result.error
        assert clob.submit_count == 0


class TestDepositRetry:
    """Insufficient balance -> deposit -> wait -> retry."""

    def test_balance_error_deposits_once_and_retries_once(self, executor, clob, settlement, sleep):
        clob.submit_errors = [BALANCE_ERROR]
        result = run_async(executor.execute_trade(make_decision(size="10")))

        assert result.success is True
        assert result.retried is True
        assert result.deposit_tx_hash == "0xdeposit1"
        assert settlement.deposits == [Decimal("12")]
        assert sleep.delays == [5.0]
        assert clob.submit_count == 2
        assert clob.collateral_refreshes == 1

    def test_second_balance_error_is_terminal(self, executor, clob, settlement, sleep):
        clob.submit_errors = [BALANCE_ERROR, BALANCE_ERROR, BALANCE_ERROR]
        result = run_async(executor.execute_trade(make_decision()))

        assert result.success is False
        assert result.retried is True
        assert "Retry after deposit failed" in result.error
        assert len(settlement.deposits) == 1
        assert len(sleep.delays) == 1
        assert clob.submit_count == 2

    def test_rejection_response_triggers_deposit(self, executor, clob, settlement):
        clob.reject_message = "not enough balance / allowance"
        result = run_async(executor.execute_trade(make_decision()))
        assert result.success is False
        assert len(settlement.deposits) == 1
        assert clob.submit_count == 2

    def test_deposit_failure(self, clob, sleep):
        settlement = MockSettlement(deposit_error="insufficient wallet USDC")
        executor = TradeExecutor(clob, settlement=settlement, sleep=sleep)
        clob.submit_errors = [BALANCE_ERROR]

        result = run_async(executor.execute_trade(make_decision()))
        assert result.success is False
        assert "Deposit failed" in result.error
        assert sleep.delays == []
        assert clob.submit_count == 1

    def test_other_error_no_deposit(self, executor, clob, settlement, sleep):
        clob.submit_errors = ["market closed"]
        result = run_async(executor.execute_trade(make_decision()))
        assert result.success is False
        assert result.error == "market closed"
        assert settlement.deposits == []
        assert clob.submit_count == 1

    def test_no_settlement_configured(self, clob, sleep):
        executor = TradeExecutor(clob, sleep=sleep)
        clob.submit_errors = [BALANCE_ERROR]
        result = run_async(executor.execute_trade(make_decision()))
        assert result.success is False
        assert clob.submit_count == 1

    def test_deposit_amount_rounds_up_with_buffer(self):
        executor = TradeExecutor(MockClob(), config=ExecutionConfig(deposit_buffer=Decimal("2")))
        assert executor.deposit_amount(Decimal("10.25")) == Decimal("13")
        assert executor.deposit_amount(Decimal("10")) == Decimal("12")


class TestBalanceErrorDetection:

    @pytest.mark.parametrize("message", [
        "not enough balance / allowance",
        "PolyApiException[status_code=400, error_message={'error': 'not enough balance / allowance'}]",
        "Insufficient balance for order",
    ])
    def test_recognized(self, message):
        assert is_balance_error(message)

    def test_other_errors(self):
        assert not is_balance_error("order crosses book")
