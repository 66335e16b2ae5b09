#!/usr/bin/env python3
"""
Autonomous Trader - Main Entry Point

Scans markets on an interval, evaluates threshold opportunities and
(in unsupervised mode) trades them, while a separate monitor redeems
resolved winning positions.

Usage:
    autotrader run [--unsupervised] [--markets ID,ID] [--no-redemption]
    autotrader once
    autotrader status
    autotrader redeem

Examples:
    # Monitoring only (default): decisions are reported, nothing is traded
    autotrader run

    # Live trading with conservative limits
    autotrader run --unsupervised --conservative
"""

from dataclasses import dataclass, replace
from typing import List, Optional
import argparse
import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

from autotrader.trading.config import (
    ConfigurationError,
    TradingConfig,
    VenueSettings,
    get_conservative_config,
)
from autotrader.trading.controller import AutonomousTradingController
from autotrader.trading.execution.executor import TradeExecutor
from autotrader.trading.redemption import RedemptionMonitor
from autotrader.trading.scanner import MarketScanner
from autotrader.trading.strategies.evaluator import OpportunityEvaluator
from autotrader.trading.tracking.balance import BalanceTracker
from autotrader.trading.tracking.positions import PositionTracker
from autotrader.utils.alerts import DiscordAlerter
from autotrader.utils.display import print_status

logger = logging.getLogger(__name__)


@dataclass
class TradingStack:
    controller: AutonomousTradingController
    redemption: Optional[RedemptionMonitor]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="autotrader",
        description="Autonomous Polymarket Trader",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "command",
        choices=["run", "once", "status", "redeem"],
        nargs="?",
        default="run",
        help="run: start controller, once: single tick, status: print status, redeem: one redemption cycle",
    )
    parser.add_argument(
        "--unsupervised",
        action="store_true",
        help="Place real orders (default: report decisions only)",
    )
    parser.add_argument(
        "--conservative",
        action="store_true",
        help="Use conservative limits instead of the environment",
    )
    parser.add_argument(
        "--markets",
        type=str,
        default=None,
        help="Comma-separated condition ids to scan (default: scan all active)",
    )
    parser.add_argument(
        "--no-redemption",
        action="store_true",
        help="Disable the redemption monitor",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level",
    )
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> TradingConfig:
    """Environment config with command line overrides applied."""
    config = get_conservative_config() if args.conservative else TradingConfig.from_env()

    if args.unsupervised:
        config = replace(config, unsupervised_mode=True)
    if args.markets:
        market_ids = tuple(m.strip() for m in args.markets.split(",") if m.strip())
        config = replace(config, market_ids=market_ids)
    if args.no_redemption:
        config = replace(config, redemption=replace(config.redemption, enabled=False))
    return config


def build_stack(config: TradingConfig, settings: VenueSettings) -> TradingStack:
    """Wire the venue clients and trading components together."""
    from autotrader.polymarket.clob import ClobGateway
    from autotrader.polymarket.data_api import DataApiClient
    from autotrader.polymarket.gamma import GammaClient
    from autotrader.polymarket.settlement import SettlementClient

    clob = ClobGateway.from_settings(settings)
    gamma = GammaClient(settings.gamma_url, timeout=settings.request_timeout)
    data_api = DataApiClient(settings.data_api_url, timeout=settings.request_timeout)
    settlement = SettlementClient.from_settings(settings)
    alerter = DiscordAlerter()

    balance = BalanceTracker(clob, cache_seconds=config.balance_cache_seconds)
    positions = PositionTracker(data_api, clob.address)
    scanner = MarketScanner(
        gamma,
        clob,
        market_ids=config.market_ids,
        held_markets=positions.held_market_ids,
    )
    executor = TradeExecutor(
        clob,
        settlement=settlement,
        market_data=gamma,
        config=config.execution,
        balance_tracker=balance,
    )
    controller = AutonomousTradingController(
        config,
        scanner,
        OpportunityEvaluator(config),
        executor,
        positions,
        balance,
        reporter=alerter.report,
    )

    redemption = None
    if config.redemption.enabled:
        redemption = RedemptionMonitor(
            data_api,
            clob,
            settlement,
            clob.address,
            interval_seconds=config.redemption.interval_seconds,
            reporter=alerter.report,
        )
    return TradingStack(controller=controller, redemption=redemption)


async def run_forever(stack: TradingStack, duration: Optional[float]) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    await stack.controller.start()
    if stack.redemption is not None:
        stack.redemption.start()

    try:
        await asyncio.wait_for(stop_event.wait(), timeout=duration)
    except asyncio.TimeoutError:
        logger.info(f"Duration of {duration}s reached")
    finally:
        await stack.controller.stop()
        if stack.redemption is not None:
            await stack.redemption.stop()
        await stack.controller.wait_idle()
        if stack.redemption is not None:
            await stack.redemption.wait_idle()


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.getLogger().setLevel(getattr(logging, args.log_level))

    try:
        config = resolve_config(args)
        settings = VenueSettings.from_env()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    logger.info(f"Configuration: {config.mode}, {len(config.market_ids) or 'all'} markets")
    stack = build_stack(config, settings)
    controller = stack.controller

    if args.command == "status":
        await controller.load_state()
        print_status(controller)
        return 0

    if args.command == "redeem":
        if stack.redemption is None:
            logger.error("Redemption is disabled")
            return 1
        results = await stack.redemption.check_and_redeem()
        for result in results:
            print(repr(result))
        return 0 if all(r.success for r in results) else 1

    if args.command == "once":
        await controller.load_state()
        await controller.run_tick()
        print_status(controller)
        return 0

    try:
        await run_forever(stack, args.duration)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    status = controller.get_status()
    logger.info("=" * 60)
    logger.info("FINAL STATUS")
    logger.info("=" * 60)
    logger.info(f"Ticks: {status['stats']['ticks']} ({status['stats']['ticks_skipped']} skipped)")
    logger.info(f"Decisions accepted: {status['stats']['decisions_accepted']}")
    logger.info(f"Trades executed: {status['stats']['trades_executed']}")
    logger.info(f"Trades failed: {status['stats']['trades_failed']}")
    logger.info(f"Errors: {status['stats']['errors']}")
    logger.info("=" * 60)
    return 0


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
