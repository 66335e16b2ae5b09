"""
Gamma Market Data Client

Read-only market metadata from the Gamma API.
Base URL: https://gamma-api.polymarket.com/
"""

from typing import Any, Dict, List, Optional
import asyncio
import logging

import requests
from pydantic import ValidationError

from autotrader.polymarket.schemas import GammaMarket

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """Raised when market data cannot be fetched or parsed."""
    pass


class GammaClient:
    """Fetches market metadata (outcomes, token ids, status) from Gamma."""

    DEFAULT_BASE_URL = "https://gamma-api.polymarket.com"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise MarketDataError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"GET {path} returned invalid JSON: {e}") from e

    def fetch_market(self, condition_id: str) -> Optional[GammaMarket]:
        """
        Fetch one market by condition id.

        Endpoint: GET /markets?condition_ids=<id>
        Returns None when Gamma does not know the market.
        """
        data = self._get("/markets", {"condition_ids": condition_id})
        if not data:
            return None
        try:
            return GammaMarket.model_validate(data[0])
        except (ValidationError, KeyError, TypeError) as e:
            raise MarketDataError(f"Malformed market {condition_id}: {e}") from e

    def fetch_active_markets(self, limit: int = 50) -> List[GammaMarket]:
        """
        Fetch open markets ordered by volume.

        Endpoint: GET /markets?active=true&closed=false
        Markets that fail schema validation are dropped.
        """
        data = self._get(
            "/markets",
            {
                "active": "true",
                "closed": "false",
                "limit": limit,
                "order": "volume",
                "ascending": "false",
            },
        )
        markets = []
        for raw in data or []:
            try:
                markets.append(GammaMarket.model_validate(raw))
            except ValidationError as e:
                logger.debug(f"Dropping malformed market {raw.get('id')}: {e.error_count()} errors")
        return markets

    async def get_market(self, condition_id: str) -> Optional[GammaMarket]:
        return await asyncio.to_thread(self.fetch_market, condition_id)

    async def list_active_markets(self, limit: int = 50) -> List[GammaMarket]:
        return await asyncio.to_thread(self.fetch_active_markets, limit)
