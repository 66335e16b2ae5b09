"""
Account state trackers

- balance: cached venue collateral balance
- positions: full-replace cache of open holdings
"""

from autotrader.trading.tracking.balance import BalanceTracker
from autotrader.trading.tracking.positions import PositionTracker, to_position_record

__all__ = [
    "BalanceTracker",
    "PositionTracker",
    "to_position_record",
]
