"""
Order Execution

Provides order execution with:
- Validation against venue price/size limits
- Deposit-and-retry on insufficient venue balance
- Full audit logging
"""

from autotrader.trading.execution.executor import (
    TradeExecutor,
    ExecutionError,
    InsufficientBalanceError,
    is_balance_error,
)

__all__ = [
    "TradeExecutor",
    "ExecutionError",
    "InsufficientBalanceError",
    "is_balance_error",
]
