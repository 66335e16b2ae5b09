"""Tests for autonomous trader configuration."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from autotrader.trading.config import (
    ConfigurationError,
    ExecutionConfig,
    RedemptionConfig,
    StrategyConfig,
    TradingConfig,
    TradingHours,
    VenueSettings,
    get_conservative_config,
    get_default_config,
)


class TestTradingConfig:
    """Tests for TradingConfig validation."""

    def test_defaults(self):
        config = TradingConfig()
        assert config.unsupervised_mode is False
        assert config.max_position_size == Decimal("100")
        assert config.min_confidence_threshold == Decimal("0.7")
        assert config.max_daily_trades == 10
        assert config.max_open_positions == 20
        assert config.risk_limit_per_trade == Decimal("50")
        assert config.trading_hours is None
        assert config.mode == "SUPERVISED"

    def test_immutable(self):
        config = TradingConfig()
        with pytest.raises(Exception):
            config.max_daily_trades = 99

    def test_confidence_out_of_range(self):
        with pytest.raises(ValueError, match="min_confidence_threshold must be 0-1"):
            TradingConfig(min_confidence_threshold=Decimal("1.5"))

    def test_non_positive_position_size(self):
        with pytest.raises(ValueError, match="max_position_size must be positive"):
            TradingConfig(max_position_size=Decimal("0"))

    def test_non_positive_daily_trades(self):
        with pytest.raises(ValueError, match="max_daily_trades must be positive"):
            TradingConfig(max_daily_trades=0)

    def test_non_positive_open_positions(self):
        with pytest.raises(ValueError, match="max_open_positions must be positive"):
            TradingConfig(max_open_positions=0)

    def test_risk_limit_above_position_size(self):
        with pytest.raises(ConfigurationError, match="cannot exceed max_position_size"):
            TradingConfig(max_position_size=Decimal("20"), risk_limit_per_trade=Decimal("30"))

    def test_min_unit_above_risk_limit(self):
        with pytest.raises(ConfigurationError, match="min_unit_size cannot exceed"):
            TradingConfig(
                risk_limit_per_trade=Decimal("5"),
                strategy=StrategyConfig(min_unit_size=Decimal("10")),
            )

    def test_presets_are_valid(self):
        assert get_default_config().unsupervised_mode is False
        conservative = get_conservative_config()
        assert conservative.unsupervised_mode is True
        assert conservative.risk_limit_per_trade <= conservative.max_position_size


class TestStrategyConfig:
    """Tests for StrategyConfig validation."""

    def test_defaults(self):
        strategy = StrategyConfig()
        assert strategy.buy_threshold == Decimal("0.10")
        assert strategy.sell_threshold == Decimal("0.90")
        assert strategy.min_edge == Decimal("0.02")
        assert strategy.fixed_size == Decimal("10")

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValueError, match="buy_threshold must be below sell_threshold"):
            StrategyConfig(buy_threshold=Decimal("0.6"), sell_threshold=Decimal("0.4"))

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown confidence_policy"):
            StrategyConfig(confidence_policy="oracle")


class TestExecutionAndRedemptionConfig:

    def test_execution_defaults(self):
        config = ExecutionConfig()
        assert config.order_type == "GTC"
        assert config.deposit_buffer == Decimal("2")
        assert config.retry_delay_seconds == 5.0

    def test_unknown_order_type(self):
        with pytest.raises(ValueError, match="Unknown order_type"):
            ExecutionConfig(order_type="IOC")

    def test_redemption_interval_positive(self):
        with pytest.raises(ValueError, match="interval_seconds must be positive"):
            RedemptionConfig(interval_seconds=0)


class TestTradingHours:
    """Tests for the trading-hours window."""

    def test_inside_and_outside(self):
        hours = TradingHours(start_hour=9, end_hour=17, timezone="UTC")
        assert hours.contains(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))
        assert hours.contains(datetime(2024, 5, 1, 16, 59, tzinfo=timezone.utc))
        assert not hours.contains(datetime(2024, 5, 1, 17, 0, tzinfo=timezone.utc))
        assert not hours.contains(datetime(2024, 5, 1, 8, 59, tzinfo=timezone.utc))

    def test_window_wrapping_midnight(self):
        hours = TradingHours(start_hour=22, end_hour=2, timezone="UTC")
        assert hours.contains(datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc))
        assert hours.contains(datetime(2024, 5, 2, 1, 0, tzinfo=timezone.utc))
        assert not hours.contains(datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc))

    def test_timezone_conversion(self):
        hours = TradingHours(start_hour=9, end_hour=17, timezone="America/New_York")
        # 14:00 UTC is 10:00 in New York during daylight saving time
        assert hours.contains(datetime(2024, 7, 1, 14, 0, tzinfo=timezone.utc))
        assert not hours.contains(datetime(2024, 7, 1, 23, 0, tzinfo=timezone.utc))

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError, match="Unknown timezone"):
            TradingHours(start_hour=9, end_hour=17, timezone="Mars/Olympus")

    def test_empty_window(self):
        with pytest.raises(ConfigurationError, match="empty"):
            TradingHours(start_hour=9, end_hour=9)


class TestFromEnv:
    """Tests for environment loading."""

    def test_empty_env_gives_defaults(self):
        assert TradingConfig.from_env({}) == TradingConfig()

    def test_overrides(self):
        config = TradingConfig.from_env({
            "UNSUPERVISED_MODE": "true",
            "MAX_POSITION_SIZE": "40",
            "MIN_CONFIDENCE_THRESHOLD": "0.75",
            "MAX_DAILY_TRADES": "3",
            "MAX_OPEN_POSITIONS": "4",
            "RISK_LIMIT_PER_TRADE": "20",
            "MARKET_IDS": "0xabc, 0xdef,",
            "TRADING_HOURS_START": "8",
            "TRADING_HOURS_END": "20",
            "TRADING_HOURS_TIMEZONE": "Europe/London",
            "AUTO_REDEMPTION": "false",
            "CONFIDENCE_POLICY": "complement",
        })
        assert config.unsupervised_mode is True
        assert config.max_position_size == Decimal("40")
        assert config.min_confidence_threshold == Decimal("0.75")
        assert config.max_daily_trades == 3
        assert config.max_open_positions == 4
        assert config.risk_limit_per_trade == Decimal("20")
        assert config.market_ids == ("0xabc", "0xdef")
        assert config.trading_hours == TradingHours(8, 20, "Europe/London")
        assert config.redemption.enabled is False
        assert config.strategy.confidence_policy == "complement"

    def test_zero_fixed_size_means_weighted(self):
        config = TradingConfig.from_env({"FIXED_POSITION_SIZE": "0"})
        assert config.strategy.fixed_size is None

    def test_bad_number(self):
        with pytest.raises(ConfigurationError, match="MAX_DAILY_TRADES must be an integer"):
            TradingConfig.from_env({"MAX_DAILY_TRADES": "lots"})

    def test_invalid_limits_are_fatal(self):
        with pytest.raises(ConfigurationError):
            TradingConfig.from_env({"MAX_POSITION_SIZE": "10", "RISK_LIMIT_PER_TRADE": "50"})


class TestVenueSettings:

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="POLYMARKET_PRIVATE_KEY is required"):
            VenueSettings.from_env({})

    def test_proxy_required_for_proxy_signature(self):
        with pytest.raises(ConfigurationError, match="POLYMARKET_PROXY_ADDRESS"):
            VenueSettings.from_env({"POLYMARKET_PRIVATE_KEY": "0x1"})

    def test_eoa_mode(self):
        settings = VenueSettings.from_env({
            "POLYMARKET_PRIVATE_KEY": "0xsecret",
            "POLYMARKET_SIGNATURE_TYPE": "0",
        })
        assert settings.signature_type == 0
        assert settings.chain_id == 137
        assert "0xsecret" not in repr(settings)
