"""
Polymarket Data API Client

Uses the official Polymarket Data API for account holdings.
Endpoints from: https://docs.polymarket.com/developers/misc-endpoints/

Data API Base URL: https://data-api.polymarket.com/
"""

from decimal import Decimal
from typing import List, Optional
import asyncio
import logging

import requests
from pydantic import ValidationError

from autotrader.polymarket.gamma import MarketDataError
from autotrader.polymarket.schemas import DataApiPosition

logger = logging.getLogger(__name__)


class DataApiClient:
    """Reads on-chain holdings for a wallet from the Data API."""

    DATA_API_BASE = "https://data-api.polymarket.com"
    PAGE_SIZE = 500

    def __init__(
        self,
        base_url: str = DATA_API_BASE,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self._session = session or requests.Session()

    def _fetch_page(self, address: str, size_threshold: Decimal, offset: int) -> list:
        url = f"{self.base_url}/positions"
        params = {
            "user": address,
            "sizeThreshold": str(size_threshold),
            "limit": self.page_size,
            "offset": offset,
        }

        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise MarketDataError(f"Position fetch failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Position fetch returned invalid JSON: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise MarketDataError(f"Unexpected positions payload: {type(data).__name__}")
        return data

    def fetch_positions(
        self,
        address: str,
        size_threshold: Decimal = Decimal("0.01"),
    ) -> List[DataApiPosition]:
        """
        Fetch all open positions for a wallet, following offset pages
        until a short page comes back.

        Endpoint: GET /positions
        Docs: https://docs.polymarket.com/developers/misc-endpoints/data-api-get-positions
        """
        rows = []
        offset = 0
        while True:
            page = self._fetch_page(address, size_threshold, offset)
            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += len(page)

        positions = []
        for raw in rows:
            try:
                positions.append(DataApiPosition.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed position {raw.get('asset')}: {e.error_count()} errors")
        return positions

    async def get_positions(
        self,
        address: str,
        size_threshold: Decimal = Decimal("0.01"),
    ) -> List[DataApiPosition]:
        return await asyncio.to_thread(self.fetch_positions, address, size_threshold)
