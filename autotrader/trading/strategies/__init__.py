"""
Decision policy

- base: pluggable confidence policies
- evaluator: threshold/edge/confidence evaluator with position sizing
"""

from autotrader.trading.strategies.base import (
    ConfidencePolicy,
    FixedConfidence,
    ComplementConfidence,
    create_confidence_policy,
)
from autotrader.trading.strategies.evaluator import OpportunityEvaluator

__all__ = [
    "ConfidencePolicy",
    "FixedConfidence",
    "ComplementConfidence",
    "create_confidence_policy",
    "OpportunityEvaluator",
]
