"""Tests for command line parsing and config resolution."""

import pytest
import asyncio
from decimal import Decimal

from autotrader.cli import TradingStack, main, parse_args, resolve_config, run_forever
from autotrader.trading.redemption import RedemptionMonitor
from tests.mocks.mock_polymarket_client import (
    MockClob,
    MockDataApi,
    MockSettlement,
    RecordingReporter,
    make_clob_market,
    make_position,
)

ENV_KEYS = [
    "UNSUPERVISED_MODE",
    "MARKET_IDS",
    "POLYMARKET_PRIVATE_KEY",
    "POLYMARKET_PROXY_ADDRESS",
    "MAX_DAILY_TRADES",
    "AUTO_REDEMPTION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.command == "run"
        assert args.unsupervised is False
        assert args.markets is None
        assert args.duration is None

    def test_rejects_unknown_command(self):
        with pytest.raises(SystemExit):
            parse_args(["trade"])


class TestResolveConfig:

    def test_env_defaults_are_supervised(self):
        config = resolve_config(parse_args(["once"]))
        assert config.unsupervised_mode is False
        assert config.market_ids == ()

    def test_overrides(self):
        config = resolve_config(parse_args([
            "run", "--unsupervised", "--markets", "0xaaa, 0xbbb,", "--no-redemption",
        ]))
        assert config.unsupervised_mode is True
        assert config.market_ids == ("0xaaa", "0xbbb")
        assert config.redemption.enabled is False

    def test_conservative_preset(self):
        config = resolve_config(parse_args(["--conservative"]))
        assert config.max_daily_trades == 3
        assert config.unsupervised_mode is True

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("MAX_DAILY_TRADES", "4")
        monkeypatch.setenv("MARKET_IDS", "0xccc")
        config = resolve_config(parse_args([]))
        assert config.max_daily_trades == 4
        assert config.market_ids == ("0xccc",)


class TestMain:

    def test_missing_credentials_exit_code(self):
        assert asyncio.run(main(["status"])) == 2

    def test_invalid_env_exit_code(self, monkeypatch):
        monkeypatch.setenv("MAX_DAILY_TRADES", "0")
        assert asyncio.run(main(["once"])) == 2


class IdleController:
    """Controller stand-in that does nothing between start and stop."""

    def __init__(self):
        self.calls = []

    async def start(self):
        self.calls.append("start")

    async def stop(self):
        self.calls.append("stop")

    async def wait_idle(self):
        self.calls.append("wait_idle")


class TestRunForever:

    def test_shutdown_waits_for_inflight_redemption(self):
        class SlowSettlement(MockSettlement):
            async def redeem(self, condition_id, index_sets):
                tx_hash = await super().redeem(condition_id, index_sets)
                await asyncio.sleep(0.2)
                return tx_hash

        clob = MockClob()
        clob.markets["0xwin"] = make_clob_market("0xwin", "Won market", winner="Yes")
        settlement = SlowSettlement()
        reporter = RecordingReporter()
        monitor = RedemptionMonitor(
            MockDataApi([make_position("0xwin", "Yes", size="3")]),
            clob, settlement, "0xproxy", reporter=reporter,
        )
        controller = IdleController()

        asyncio.run(run_forever(TradingStack(controller=controller, redemption=monitor), duration=0.05))

        assert controller.calls == ["start", "stop", "wait_idle"]
        assert settlement.redeems == [("0xwin", [1])]
        assert monitor.total_redeemed == Decimal("3")
        assert reporter.contains("Position REDEEMED")
