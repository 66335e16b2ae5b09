"""
Trade Executor

Turns accepted decisions (or explicit order requests) into signed CLOB
orders.

Features:
- Order validation (price range, minimum order value, token id)
- Token id lookup on Gamma when the decision does not carry one
- One deposit-and-retry when the venue reports insufficient balance
- Balance cache invalidation after orders and deposits
"""

from decimal import Decimal, ROUND_CEILING, ROUND_DOWN
from typing import Any, Awaitable, Callable, Optional
import asyncio
import logging

from autotrader.trading.config import ExecutionConfig
from autotrader.trading.models import (
    BUY,
    SELL,
    ExecutionResult,
    OrderRequest,
    TradingDecision,
)

logger = logging.getLogger(__name__)

BALANCE_ERROR_MARKERS = (
    "not enough balance",
    "insufficient balance",
    "allowance",
)


class ExecutionError(Exception):
    """Raised when an order cannot be built or is rejected."""
    pass


class InsufficientBalanceError(ExecutionError):
    """Venue rejected the order for balance/allowance reasons."""
    pass


def is_balance_error(message: str) -> bool:
    text = message.lower()
    return any(marker in text for marker in BALANCE_ERROR_MARKERS)


class TradeExecutor:
    """
    Single-attempt order state machine:

        SUBMIT -> ok                          -> success
        SUBMIT -> balance/allowance error     -> DEPOSIT
        DEPOSIT -> ok -> WAIT -> RETRY_SUBMIT -> success | failure
        DEPOSIT -> error                      -> failure
        SUBMIT -> other error                 -> failure

    At most one deposit and one retry happen per attempt.
    """

    MIN_PRICE = Decimal("0.01")
    MAX_PRICE = Decimal("0.99")
    SHARE_STEP = Decimal("0.01")

    def __init__(
        self,
        clob: Any,
        settlement: Optional[Any] = None,
        market_data: Optional[Any] = None,
        config: Optional[ExecutionConfig] = None,
        balance_tracker: Optional[Any] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._clob = clob
        self._settlement = settlement
        self._market_data = market_data
        self._config = config or ExecutionConfig()
        self._balance = balance_tracker
        self._sleep = sleep

        deposits = "enabled" if settlement is not None else "disabled"
        logger.info(f"TradeExecutor initialized (order type {self._config.order_type}, deposits {deposits})")

    def _validate(self, request: OrderRequest) -> None:
        if not request.token_id:
            raise ExecutionError("Token ID required")
        if request.side not in (BUY, SELL):
            raise ExecutionError(f"Invalid side: {request.side}")
        if request.price < self.MIN_PRICE:
            raise ExecutionError(f"Price {request.price} below minimum {self.MIN_PRICE}")
        if request.price > self.MAX_PRICE:
            raise ExecutionError(f"Price {request.price} above maximum {self.MAX_PRICE}")
        if request.size < self._config.min_order_value:
            raise ExecutionError(
                f"Order value ${request.size} below minimum ${self._config.min_order_value}"
            )

    def shares_for(self, size: Decimal, price: Decimal) -> Decimal:
        """USDC size to share count, rounded down to the venue step."""
        return (size / price).quantize(self.SHARE_STEP, rounding=ROUND_DOWN)

    def deposit_amount(self, size: Decimal) -> Decimal:
        """Whole-dollar deposit covering the order plus the buffer."""
        return (size + self._config.deposit_buffer).to_integral_value(rounding=ROUND_CEILING)

    async def _resolve_token(self, decision: TradingDecision) -> Optional[str]:
        if decision.token_id:
            return decision.token_id
        if self._market_data is None:
            return None
        market = await self._market_data.get_market(decision.market_id)
        if market is None:
            return None
        return market.token_for(decision.outcome)

    async def _submit(self, request: OrderRequest, shares: Decimal) -> str:
        """Sign and post one order. Returns the order id."""
        order_type = request.order_type or self._config.order_type
        try:
            signed = await self._clob.create_order(request.token_id, request.side, request.price, shares)
            response = await self._clob.submit_order(signed, order_type)
        except Exception as e:
            message = str(e)
            if is_balance_error(message):
                raise InsufficientBalanceError(message) from e
            raise ExecutionError(message) from e

        if not response.accepted:
            message = response.error_msg or f"Order not accepted (status={response.status})"
            if is_balance_error(message):
                raise InsufficientBalanceError(message)
            raise ExecutionError(message)
        return response.order_id

    async def _deposit(self, size: Decimal) -> str:
        amount = self.deposit_amount(size)
        logger.info(f"Depositing ${amount} to cover ${size} order")
        tx_hash = await self._settlement.deposit(amount)
        if self._balance is not None:
            self._balance.invalidate()
        try:
            await self._clob.refresh_collateral()
        except Exception as e:
            logger.warning(f"Collateral refresh after deposit failed: {e}")
        return tx_hash

    def _invalidate_balance(self) -> None:
        if self._balance is not None:
            self._balance.invalidate()

    async def place_order(self, request: OrderRequest) -> ExecutionResult:
        """Run the submit/deposit/retry state machine for one order."""
        try:
            self._validate(request)
        except ExecutionError as e:
            logger.warning(f"Order validation failed: {e}")
            return ExecutionResult(success=False, order_id=None, error=str(e))

        shares = self.shares_for(request.size, request.price)
        label = f"{request.side} {request.outcome or request.token_id[:12]} ${request.size} @ {request.price}"
        logger.info(f"SUBMIT: {label} ({shares} shares)")

        try:
            order_id = await self._submit(request, shares)
            self._invalidate_balance()
            logger.info(f"ORDER PLACED: {label} order={order_id}")
            return ExecutionResult(
                success=True, order_id=order_id, error=None,
                price=request.price, size=request.size,
            )
        except InsufficientBalanceError as e:
            balance_error = str(e)
        except ExecutionError as e:
            logger.error(f"Order failed: {label}: {e}")
            return ExecutionResult(success=False, order_id=None, error=str(e))

        if self._settlement is None:
            logger.error(f"Order failed, no deposit source configured: {balance_error}")
            return ExecutionResult(success=False, order_id=None, error=balance_error)

        logger.warning(f"Insufficient venue balance for {label}: {balance_error}")
        try:
            tx_hash = await self._deposit(request.size)
        except Exception as e:
            logger.error(f"Deposit failed: {e}")
            return ExecutionResult(
                success=False, order_id=None,
                error=f"Deposit failed after balance error ({balance_error}): {e}",
            )

        logger.info(f"Deposit confirmed ({tx_hash}), retrying in {self._config.retry_delay_seconds}s")
        await self._sleep(self._config.retry_delay_seconds)

        try:
            order_id = await self._submit(request, shares)
        except ExecutionError as e:
            logger.error(f"Retry after deposit failed: {label}: {e}")
            return ExecutionResult(
                success=False, order_id=None, error=f"Retry after deposit failed: {e}",
                deposit_tx_hash=tx_hash, retried=True,
            )

        self._invalidate_balance()
        logger.info(f"ORDER PLACED after deposit: {label} order={order_id}")
        return ExecutionResult(
            success=True, order_id=order_id, error=None,
            price=request.price, size=request.size,
            deposit_tx_hash=tx_hash, retried=True,
        )

    async def execute_trade(self, decision: TradingDecision) -> ExecutionResult:
        """Execute an accepted decision."""
        if not decision.should_trade:
            return ExecutionResult(success=False, order_id=None, error="Decision is not a trade")

        try:
            token_id = await self._resolve_token(decision)
        except Exception as e:
            logger.error(f"Token lookup failed for {decision.market_id[:12]}: {e}")
            return ExecutionResult(success=False, order_id=None, error=f"Token lookup failed: {e}")

        if not token_id:
            return ExecutionResult(
                success=False, order_id=None,
                error=f"No token id for {decision.outcome} in {decision.market_id[:12]}",
            )

        request = OrderRequest(
            token_id=token_id,
            side=decision.side,
            price=decision.price,
            size=decision.size,
            market_id=decision.market_id,
            outcome=decision.outcome,
        )
        return await self.place_order(request)

    def get_status(self) -> dict:
        return {
            "order_type": self._config.order_type,
            "deposits_enabled": self._settlement is not None,
            "deposit_buffer": str(self._config.deposit_buffer),
            "retry_delay_seconds": self._config.retry_delay_seconds,
        }
