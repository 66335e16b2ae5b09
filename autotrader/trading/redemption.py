"""
Redemption Monitor

Periodically checks holdings for resolved markets and redeems winning
positions on-chain. Runs on its own timer, independent of the trading
loop, and never touches the trading risk counters.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Set
import asyncio
import logging

from autotrader.polymarket.schemas import ClobMarket, DataApiPosition
from autotrader.trading.models import RedemptionResult, to_base_units
from autotrader.utils.alerts import Reporter, deliver

logger = logging.getLogger(__name__)


class RedemptionMonitor:
    """
    Redeems winning holdings.

    Standard markets redeem through ConditionalTokens with an index set
    of 1 << outcome_index; neg-risk markets redeem through the
    NegRiskAdapter with per-outcome amounts.
    """

    def __init__(
        self,
        data_api: Any,
        clob: Any,
        settlement: Any,
        address: str,
        interval_seconds: float = 1800.0,
        reporter: Optional[Reporter] = None,
        size_threshold: Decimal = Decimal("0.01"),
    ):
        self._data_api = data_api
        self._clob = clob
        self._settlement = settlement
        self._address = address
        self._interval = interval_seconds
        self._reporter = reporter
        self._size_threshold = size_threshold

        self._checking = False
        self._task: Optional[asyncio.Task] = None
        self._cycle_task: Optional[asyncio.Task] = None
        self.cycles_run = 0
        self.cycles_skipped = 0
        self.total_redeemed = Decimal("0")

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def is_checking(self) -> bool:
        return self._checking

    def start(self) -> None:
        if self._task is not None:
            return
        logger.info(f"Redemption monitor started (every {self._interval / 60:.0f} min)")
        self._task = asyncio.create_task(self._schedule())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Redemption monitor stopped")

    async def wait_idle(self) -> None:
        """Wait for the in-flight redemption cycle, if any."""
        if self._cycle_task is not None:
            await self._cycle_task

    async def _schedule(self) -> None:
        while True:
            if self._cycle_task is None or self._cycle_task.done():
                self._cycle_task = asyncio.create_task(self._guarded_cycle())
            else:
                self.cycles_skipped += 1
                logger.info("Previous redemption check still running, skipping")
            await asyncio.sleep(self._interval)

    async def _guarded_cycle(self) -> None:
        try:
            await self.check_and_redeem()
        except Exception as e:
            logger.error(f"Redemption cycle error: {e}", exc_info=True)

    async def check_and_redeem(self) -> List[RedemptionResult]:
        """Run one redemption cycle. Returns [] if a cycle is already running."""
        if self._checking:
            self.cycles_skipped += 1
            logger.info("Redemption check already in progress, skipping")
            return []

        self._checking = True
        try:
            return await self._run_cycle()
        finally:
            self._checking = False

    async def _run_cycle(self) -> List[RedemptionResult]:
        self.cycles_run += 1
        try:
            holdings = await self._data_api.get_positions(self._address, self._size_threshold)
        except Exception as e:
            logger.error(f"Could not fetch holdings for redemption: {e}")
            return []

        markets: Dict[str, Optional[ClobMarket]] = {}
        handled: Set[str] = set()
        results: List[RedemptionResult] = []

        for holding in holdings:
            condition_id = holding.condition_id
            if not condition_id or holding.size <= Decimal("0") or condition_id in handled:
                continue

            market = await self._lookup_market(condition_id, markets)
            if market is None:
                continue

            winner = market.winning_token
            if winner is None:
                continue
            if winner.outcome.upper() != holding.outcome.upper():
                logger.debug(f"Losing holding in {condition_id[:12]} ({holding.outcome})")
                continue

            handled.add(condition_id)
            result = await self._redeem(holding, market)
            results.append(result)

            if result.success:
                self.total_redeemed += result.amount_redeemed
                await deliver(
                    self._reporter,
                    f"Position REDEEMED: ${result.amount_redeemed:.2f} from "
                    f"{result.market_question} (tx {result.tx_hash})",
                )
            else:
                await deliver(
                    self._reporter,
                    f"Redemption FAILED: {result.market_question} | {result.error}",
                )

        if results:
            redeemed = sum((r.amount_redeemed for r in results if r.success), Decimal("0"))
            succeeded = len([r for r in results if r.success])
            logger.info(f"Redemption cycle: {succeeded}/{len(results)} redeemed, ${redeemed:.2f}")
        else:
            logger.debug("Redemption cycle: nothing to redeem")
        return results

    async def _lookup_market(
        self,
        condition_id: str,
        cache: Dict[str, Optional[ClobMarket]],
    ) -> Optional[ClobMarket]:
        if condition_id in cache:
            return cache[condition_id]
        try:
            market = await self._clob.get_market(condition_id)
        except Exception as e:
            logger.warning(f"Resolution lookup failed for {condition_id[:12]}: {e}")
            market = None
        cache[condition_id] = market
        return market

    async def _redeem(self, holding: DataApiPosition, market: ClobMarket) -> RedemptionResult:
        condition_id = market.condition_id or holding.condition_id
        question = market.question or holding.title

        index = holding.outcome_index
        if index is None:
            index = market.outcome_index(holding.outcome)
        if index is None:
            return RedemptionResult(
                market_question=question,
                condition_id=condition_id,
                amount_redeemed=Decimal("0"),
                tx_hash=None,
                success=False,
                error=f"Unknown outcome {holding.outcome!r}",
            )

        try:
            if market.neg_risk or holding.negative_risk:
                amounts = [0] * max(2, len(market.tokens), index + 1)
                amounts[index] = to_base_units(holding.size)
                logger.info(f"Redeeming neg-risk {condition_id[:12]} amounts={amounts}")
                tx_hash = await self._settlement.redeem_neg_risk(condition_id, amounts)
            else:
                index_sets = [1 << index]
                logger.info(f"Redeeming {condition_id[:12]} index_sets={index_sets}")
                tx_hash = await self._settlement.redeem(condition_id, index_sets)
        except Exception as e:
            logger.error(f"Redemption failed for {condition_id[:12]}: {e}")
            return RedemptionResult(
                market_question=question,
                condition_id=condition_id,
                amount_redeemed=Decimal("0"),
                tx_hash=None,
                success=False,
                error=str(e),
            )

        return RedemptionResult(
            market_question=question,
            condition_id=condition_id,
            amount_redeemed=holding.size,
            tx_hash=tx_hash,
            success=True,
        )

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "checking": self._checking,
            "interval_seconds": self._interval,
            "cycles_run": self.cycles_run,
            "cycles_skipped": self.cycles_skipped,
            "total_redeemed": str(self.total_redeemed),
        }
