"""
Trading Gates

Daily trade counter and the checks that must pass before any trade
attempt: daily limit, open-position limit, trading hours.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple
import logging

from autotrader.trading.config import TradingConfig

logger = logging.getLogger(__name__)


@dataclass
class RiskCounters:
    """
    Controller-owned counters.

    daily_trade_count resets once per calendar day and only grows within
    a day.
    """
    daily_trade_count: int = 0
    last_reset_date: Optional[date] = None

    def roll_over(self, today: date) -> bool:
        """Reset the counter on a new calendar day. Returns True on reset."""
        if self.last_reset_date == today:
            return False
        if self.last_reset_date is not None:
            logger.info(
                f"New trading day {today.isoformat()}: resetting daily trades "
                f"(was {self.daily_trade_count})"
            )
        self.daily_trade_count = 0
        self.last_reset_date = today
        return True

    def record_trade(self) -> None:
        self.daily_trade_count += 1


class TradingGate:
    """Evaluates whether a trade may be attempted right now."""

    def __init__(self, config: TradingConfig):
        self._config = config

    def can_trade(
        self,
        counters: RiskCounters,
        open_positions: int,
        now: datetime,
    ) -> Tuple[bool, str]:
        """
        Check all gates.

        Returns:
            (can_trade, reason)
        """
        if counters.daily_trade_count >= self._config.max_daily_trades:
            return False, (
                f"Daily trade limit reached: "
                f"{counters.daily_trade_count}/{self._config.max_daily_trades}"
            )

        if open_positions >= self._config.max_open_positions:
            return False, (
                f"Max open positions reached: "
                f"{open_positions}/{self._config.max_open_positions}"
            )

        hours = self._config.trading_hours
        if hours is not None and not hours.contains(now):
            return False, f"Outside trading hours ({hours})"

        return True, "OK"
