"""
Autonomous Trading Controller

Main orchestrator: scan -> evaluate -> gate -> execute on a fixed
interval.

Features:
- STOPPED/RUNNING lifecycle with a non-overlapping tick scheduler
- Daily trade counter with calendar-day reset
- Gate checks repeated before every trade attempt
- Supervised mode reports decisions instead of trading
- Direct order entry for externally supplied orders
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set
import asyncio
import logging
import time

from autotrader.trading.config import TradingConfig
from autotrader.trading.execution.executor import TradeExecutor
from autotrader.trading.models import BUY, ExecutionResult, OrderRequest, TradingDecision
from autotrader.trading.risk.gates import RiskCounters, TradingGate
from autotrader.trading.scanner import MarketScanner
from autotrader.trading.strategies.evaluator import OpportunityEvaluator
from autotrader.trading.tracking.balance import BalanceTracker
from autotrader.trading.tracking.positions import PositionTracker
from autotrader.utils.alerts import Reporter, deliver

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


class ControllerState(str, Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


@dataclass
class ControllerStats:
    """Controller statistics."""
    ticks: int = 0
    ticks_skipped: int = 0
    opportunities_found: int = 0
    decisions_accepted: int = 0
    trades_executed: int = 0
    trades_failed: int = 0
    trades_blocked: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        runtime = time.time() - self.start_time
        return {
            "ticks": self.ticks,
            "ticks_skipped": self.ticks_skipped,
            "opportunities_found": self.opportunities_found,
            "decisions_accepted": self.decisions_accepted,
            "trades_executed": self.trades_executed,
            "trades_failed": self.trades_failed,
            "trades_blocked": self.trades_blocked,
            "errors": self.errors,
            "runtime_hours": round(runtime / 3600, 2),
        }


class AutonomousTradingController:
    """
    Owns the risk counters and the scheduling timer.

    Usage:
        controller = AutonomousTradingController(config, scanner, evaluator,
                                                 executor, positions, balance)
        await controller.start()
        ...
        await controller.stop()
    """

    def __init__(
        self,
        config: TradingConfig,
        scanner: MarketScanner,
        evaluator: OpportunityEvaluator,
        executor: TradeExecutor,
        positions: PositionTracker,
        balance: BalanceTracker,
        reporter: Optional[Reporter] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self._config = config
        self._scanner = scanner
        self._evaluator = evaluator
        self._executor = executor
        self._positions = positions
        self._balance = balance
        self._reporter = reporter
        self._clock = clock

        self._gate = TradingGate(config)
        self._counters = RiskCounters()
        self._stats = ControllerStats()
        self._state = ControllerState.STOPPED
        self._scheduler: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

        logger.info(f"Controller initialized in {config.mode} mode")

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ControllerState.RUNNING

    @property
    def daily_trade_count(self) -> int:
        return self._counters.daily_trade_count

    @property
    def stats(self) -> ControllerStats:
        return self._stats

    @property
    def positions(self) -> PositionTracker:
        return self._positions

    async def _report(self, text: str) -> None:
        await deliver(self._reporter, text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """STOPPED -> RUNNING. Runs one tick immediately, then on the interval."""
        if self.is_running:
            logger.info("Controller already running")
            return

        logger.info("=" * 60)
        logger.info("AUTONOMOUS TRADING STARTING")
        logger.info("=" * 60)
        logger.info(f"Mode: {self._config.mode}")
        logger.info(f"Scan interval: {self._config.scan_interval_seconds}s")
        logger.info(
            f"Limits: {self._config.max_daily_trades} trades/day, "
            f"{self._config.max_open_positions} open positions, "
            f"${self._config.risk_limit_per_trade}/trade"
        )
        if self._config.trading_hours:
            logger.info(f"Trading hours: {self._config.trading_hours}")
        logger.info("=" * 60)

        await self.load_state()

        self._state = ControllerState.RUNNING
        self._stats = ControllerStats()
        self._fire_tick()
        self._scheduler = asyncio.create_task(self._schedule())

        await self._report(f"Autonomous trading started ({self._config.mode})")

    async def load_state(self) -> None:
        """Load holdings and log the balance without starting the scheduler."""
        await self._positions.load_existing_positions()
        await self._balance.log_initial_balance()

    async def stop(self) -> None:
        """RUNNING -> STOPPED. An in-flight tick is left to finish."""
        if not self.is_running:
            return

        self._state = ControllerState.STOPPED
        if self._scheduler is not None:
            self._scheduler.cancel()
            try:
                await self._scheduler
            except asyncio.CancelledError:
                pass
            self._scheduler = None

        logger.info(f"Autonomous trading stopped. Stats: {self._stats.to_dict()}")
        await self._report("Autonomous trading stopped")

    async def wait_idle(self) -> None:
        """Wait for the in-flight tick, if any."""
        if self._tick_task is not None:
            await self._tick_task

    async def _schedule(self) -> None:
        while True:
            await asyncio.sleep(self._config.scan_interval_seconds)
            self._fire_tick()

    def _fire_tick(self) -> None:
        if self._tick_task is not None and not self._tick_task.done():
            self._stats.ticks_skipped += 1
            logger.warning("Previous tick still running, skipping this one")
            return
        self._tick_task = asyncio.create_task(self._guarded_tick())

    async def _guarded_tick(self) -> None:
        try:
            await self.run_tick()
        except Exception as e:
            self._stats.errors += 1
            logger.error(f"Tick error: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def can_trade(self, now: Optional[datetime] = None, unsettled_positions: int = 0) -> tuple:
        """
        Check the daily, open-position and trading-hours gates.

        unsettled_positions counts fills from the current tick that the
        position feed does not show yet.
        """
        now = now or self._clock()
        self._counters.roll_over(now.date())
        return self._gate.can_trade(
            self._counters,
            self._positions.get_position_count() + unsettled_positions,
            now,
        )

    async def run_tick(self) -> None:
        """One scan -> evaluate -> execute cycle."""
        now = self._clock()
        self._stats.ticks += 1

        allowed, reason = self.can_trade(now)

        opportunities = await self._scanner.find_opportunities()
        self._stats.opportunities_found += len(opportunities)

        if not allowed:
            logger.info(f"Trading paused: {reason} ({len(opportunities)} opportunities seen)")
            return

        attempted: Set[str] = set()
        filled: Set[str] = set()
        for opportunity in opportunities:
            unsettled = len([m for m in filled if not self._positions.has_position(m)])
            allowed, reason = self.can_trade(unsettled_positions=unsettled)
            if not allowed:
                logger.info(f"Stopping tick early: {reason}")
                break

            if opportunity.market_id in attempted or self._positions.has_position(opportunity.market_id):
                continue

            decision = self._evaluator.evaluate(opportunity)
            if not decision.should_trade:
                continue

            self._stats.decisions_accepted += 1
            attempted.add(opportunity.market_id)

            if not self._config.unsupervised_mode:
                logger.info(f"[MONITOR] {opportunity.question[:60]}: {decision.reasoning}")
                await self._report(
                    f"[MONITOR] Would trade: {opportunity.question} | {decision.reasoning}"
                )
                continue

            try:
                result = await self._execute_decision(decision)
            except Exception as e:
                self._stats.errors += 1
                logger.error(f"Trade attempt error on {opportunity.market_id[:12]}: {e}", exc_info=True)
                await self._report(f"Trade FAILED: {opportunity.question} | {e}")
                continue

            if result.success:
                filled.add(opportunity.market_id)

    async def _execute_decision(self, decision: TradingDecision) -> ExecutionResult:
        question = decision.opportunity.question

        check = await self._balance.check_balance(decision.size)
        if not check.has_enough_balance:
            self._stats.trades_blocked += 1
            detail = check.error or f"${check.usdc_balance:.2f} available, ${decision.size:.2f} needed"
            logger.warning(f"Trade skipped, insufficient balance: {detail}")
            await self._report(f"Trade skipped (insufficient balance): {question} | {detail}")
            return ExecutionResult(success=False, order_id=None, error=f"Insufficient balance: {detail}")

        result = await self._executor.execute_trade(decision)

        if result.success:
            self._counters.record_trade()
            self._stats.trades_executed += 1
            await self._positions.refresh_positions()
            logger.info(
                f"TRADE EXECUTED: {decision.outcome} ${decision.size} @ {decision.price} "
                f"(daily {self._counters.daily_trade_count}/{self._config.max_daily_trades})"
            )
            await self._report(
                f"Trade EXECUTED: BUY {decision.outcome} ${decision.size:.2f} @ {decision.price} | "
                f"{question} | order {result.order_id}"
            )
        else:
            self._stats.trades_failed += 1
            await self._report(f"Trade FAILED: {question} | {result.error}")

        return result

    # ------------------------------------------------------------------
    # Direct entry
    # ------------------------------------------------------------------

    async def place_order(
        self,
        token_id: str,
        price: Decimal,
        size: Decimal,
        side: str = BUY,
        order_type: Optional[str] = None,
        market_id: Optional[str] = None,
        outcome: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Place an explicit order, bypassing scan and evaluation.

        Not subject to the daily or position gates and not counted
        against the daily limit.
        """
        request = OrderRequest(
            token_id=token_id,
            side=side.upper(),
            price=Decimal(price),
            size=Decimal(size),
            market_id=market_id,
            outcome=outcome,
            order_type=order_type,
        )
        result = await self._executor.place_order(request)
        if result.success:
            await self._positions.refresh_positions()
        await self._report(
            f"Manual order {'EXECUTED' if result.success else 'FAILED'}: "
            f"{request.side} ${request.size} @ {request.price} | "
            f"{result.order_id if result.success else result.error}"
        )
        return result

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "state": self._state.value,
            "mode": self._config.mode,
            "daily_trade_count": self._counters.daily_trade_count,
            "max_daily_trades": self._config.max_daily_trades,
            "open_positions": self._positions.get_position_count(),
            "max_open_positions": self._config.max_open_positions,
            "total_exposure": str(self._positions.calculate_total_exposure()),
            "positions": self._positions.get_position_summary(),
            "balance": self._balance.get_balance_status(),
            "execution": self._executor.get_status(),
            "stats": self._stats.to_dict(),
        }

    def get_status_text(self) -> str:
        status = self.get_status()
        lines = [
            f"Autonomous Trading: {'RUNNING' if status['running'] else 'STOPPED'}",
            f"Mode: {status['mode']}",
            f"Daily Trades: {status['daily_trade_count']}/{status['max_daily_trades']}",
            status["positions"],
            status["balance"],
        ]
        return "\n".join(lines)
