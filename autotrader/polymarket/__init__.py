"""
Polymarket collaborators

- gamma: market metadata (requests)
- data_api: account holdings (requests)
- clob: prices, balance and orders (py_clob_client)
- settlement: deposit and redemption on Polygon (web3)
- schemas: typed response schemas (pydantic)
"""

from autotrader.polymarket.gamma import GammaClient, MarketDataError
from autotrader.polymarket.data_api import DataApiClient
from autotrader.polymarket.schemas import (
    GammaMarket,
    DataApiPosition,
    ClobMarket,
    ClobToken,
    OrderPostResponse,
    OrderBookSnapshot,
)

__all__ = [
    "GammaClient",
    "MarketDataError",
    "DataApiClient",
    "GammaMarket",
    "DataApiPosition",
    "ClobMarket",
    "ClobToken",
    "OrderPostResponse",
    "OrderBookSnapshot",
]
