"""
Autonomous Trading

Components:
- config: Validated configuration dataclasses
- models: Value types exchanged between components
- scanner: Market scanner
- strategies: Confidence policies and the opportunity evaluator
- risk: Daily counter and trading gates
- execution: Order execution with deposit-and-retry
- tracking: Balance and position trackers
- controller: Scheduler and orchestrator
- redemption: Independent redemption monitor
"""

from autotrader.trading.config import (
    ConfigurationError,
    TradingConfig,
    TradingHours,
    StrategyConfig,
    ExecutionConfig,
    RedemptionConfig,
    VenueSettings,
    get_default_config,
    get_conservative_config,
)
from autotrader.trading.models import (
    Opportunity,
    TradingDecision,
    OrderRequest,
    PositionRecord,
    BalanceSnapshot,
    BalanceCheck,
    ExecutionResult,
    RedemptionResult,
)
from autotrader.trading.scanner import MarketScanner
from autotrader.trading.strategies.evaluator import OpportunityEvaluator
from autotrader.trading.risk.gates import RiskCounters, TradingGate
from autotrader.trading.execution.executor import TradeExecutor, ExecutionError
from autotrader.trading.tracking.balance import BalanceTracker
from autotrader.trading.tracking.positions import PositionTracker
from autotrader.trading.controller import (
    AutonomousTradingController,
    ControllerState,
    ControllerStats,
)
from autotrader.trading.redemption import RedemptionMonitor

__all__ = [
    # Config
    "ConfigurationError",
    "TradingConfig",
    "TradingHours",
    "StrategyConfig",
    "ExecutionConfig",
    "RedemptionConfig",
    "VenueSettings",
    "get_default_config",
    "get_conservative_config",
    # Models
    "Opportunity",
    "TradingDecision",
    "OrderRequest",
    "PositionRecord",
    "BalanceSnapshot",
    "BalanceCheck",
    "ExecutionResult",
    "RedemptionResult",
    # Components
    "MarketScanner",
    "OpportunityEvaluator",
    "RiskCounters",
    "TradingGate",
    "TradeExecutor",
    "ExecutionError",
    "BalanceTracker",
    "PositionTracker",
    "AutonomousTradingController",
    "ControllerState",
    "ControllerStats",
    "RedemptionMonitor",
]
