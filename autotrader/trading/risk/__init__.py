"""
Risk gates for the trading controller.
"""

from autotrader.trading.risk.gates import RiskCounters, TradingGate

__all__ = [
    "RiskCounters",
    "TradingGate",
]
