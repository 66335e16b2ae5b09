"""
Autonomous trading controller for Polymarket binary markets.
"""

__version__ = "1.0.0"
