"""
Balance Tracker

Answers "is there enough venue collateral for this trade" with a short
cache so one scan cycle does not hammer the balance endpoint.
"""

from decimal import Decimal
from typing import Any, Callable, Optional
import logging
import time

from autotrader.trading.models import BalanceCheck, BalanceSnapshot

logger = logging.getLogger(__name__)

LOW_BALANCE_WARNING = Decimal("10")


class BalanceTracker:
    """
    Owns the cached balance snapshot.

    The cache is dropped with invalidate() after any successful trade or
    deposit so the next check reads fresh state.
    """

    def __init__(
        self,
        clob: Any,
        cache_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clob = clob
        self._cache_seconds = cache_seconds
        self._clock = clock
        self._snapshot: Optional[BalanceSnapshot] = None
        self._fetched_at: Optional[float] = None

    @property
    def snapshot(self) -> Optional[BalanceSnapshot]:
        """Last fetched snapshot, or None."""
        return self._snapshot

    def _is_fresh(self) -> bool:
        if self._snapshot is None or self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self._cache_seconds

    async def get_balance(self, force: bool = False) -> BalanceSnapshot:
        """
        Current venue balance.

        Raises whatever the venue client raises; use check_balance() for
        the fail-safe variant.
        """
        if not force and self._is_fresh():
            return self._snapshot

        balance = await self._clob.get_balance()
        self._snapshot = BalanceSnapshot(
            usdc_balance=Decimal(balance),
            address=getattr(self._clob, "address", None),
        )
        self._fetched_at = self._clock()
        logger.debug(f"Balance fetched: ${self._snapshot.usdc_balance:.2f}")
        return self._snapshot

    async def check_balance(self, required: Decimal) -> BalanceCheck:
        """Compare balance against a required amount. Never raises."""
        try:
            snapshot = await self.get_balance()
        except Exception as e:
            logger.warning(f"Balance check failed, blocking trade: {e}")
            return BalanceCheck(
                has_enough_balance=False,
                usdc_balance=Decimal("0"),
                required=required,
                error=str(e),
            )

        has_enough = snapshot.usdc_balance >= required
        if not has_enough:
            logger.info(
                f"Insufficient balance: ${snapshot.usdc_balance:.2f} < ${required:.2f}"
            )
        return BalanceCheck(
            has_enough_balance=has_enough,
            usdc_balance=snapshot.usdc_balance,
            required=required,
        )

    def invalidate(self) -> None:
        self._snapshot = None
        self._fetched_at = None

    async def log_initial_balance(self) -> None:
        """Log the starting balance and warn when it is too low to trade."""
        try:
            snapshot = await self.get_balance(force=True)
        except Exception as e:
            logger.error(f"Could not read initial balance: {e}")
            return

        logger.info(f"Initial balance: ${snapshot.usdc_balance:.2f} USDC ({snapshot.address})")
        if snapshot.usdc_balance <= Decimal("0"):
            logger.warning("Balance is zero; trades will need a deposit")
        elif snapshot.usdc_balance < LOW_BALANCE_WARNING:
            logger.warning(f"Low balance: ${snapshot.usdc_balance:.2f}")

    def get_balance_status(self) -> str:
        if self._snapshot is None:
            return "Balance: unknown"
        return f"Balance: ${self._snapshot.usdc_balance:.2f} USDC"
