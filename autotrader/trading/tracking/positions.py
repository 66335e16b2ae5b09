"""
Position Tracker

Caches the account's open holdings as reported by the venue. The venue
is the source of truth: every load replaces the whole map, nothing is
patched in place.
"""

from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional, Tuple
import logging

from autotrader.polymarket.schemas import DataApiPosition
from autotrader.trading.models import PositionRecord

logger = logging.getLogger(__name__)


def to_position_record(raw: DataApiPosition) -> PositionRecord:
    return PositionRecord(
        market_condition_id=raw.condition_id,
        token_id=raw.asset,
        outcome=raw.outcome,
        size=raw.size,
        avg_price=raw.avg_price,
        current_price=raw.cur_price,
        pnl=raw.cash_pnl,
        question=raw.title,
        outcome_index=raw.outcome_index,
        neg_risk=raw.negative_risk,
    )


class PositionTracker:
    """Open holdings keyed by condition id (token id when absent)."""

    def __init__(
        self,
        data_api: Any,
        address: str,
        size_threshold: Decimal = Decimal("0.01"),
    ):
        self._data_api = data_api
        self._address = address
        self._size_threshold = size_threshold
        self._positions: Dict[str, PositionRecord] = {}
        self._loaded = False

    async def load_existing_positions(self) -> bool:
        """
        Replace the cached map with the venue's current holdings.

        Returns False (and keeps the previous map) when the fetch fails.
        """
        try:
            raw_positions = await self._data_api.get_positions(
                self._address, self._size_threshold
            )
        except Exception as e:
            logger.error(f"Failed to load positions: {e}")
            return False

        positions: Dict[str, PositionRecord] = {}
        for raw in raw_positions:
            record = to_position_record(raw)
            if record.key is None or record.size <= Decimal("0"):
                continue
            positions[record.key] = record

        self._positions = positions
        self._loaded = True
        logger.info(
            f"Loaded {len(positions)} positions "
            f"(exposure ${self.calculate_total_exposure():.2f})"
        )
        return True

    async def refresh_positions(self) -> bool:
        return await self.load_existing_positions()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def positions(self) -> Tuple[PositionRecord, ...]:
        return tuple(self._positions.values())

    def get_position(self, market_id: str) -> Optional[PositionRecord]:
        return self._positions.get(market_id)

    def has_position(self, market_id: str) -> bool:
        return market_id in self._positions

    def held_market_ids(self) -> FrozenSet[str]:
        return frozenset(self._positions)

    def get_position_count(self) -> int:
        return len(self._positions)

    def calculate_total_exposure(self) -> Decimal:
        """Sum of size x avg_price over all holdings."""
        return sum((p.cost_basis for p in self._positions.values()), Decimal("0"))

    def calculate_market_value(self) -> Decimal:
        """Holdings valued at current price (avg price when unknown)."""
        return sum((p.market_value for p in self._positions.values()), Decimal("0"))

    def calculate_unrealized_pnl(self) -> Decimal:
        return self.calculate_market_value() - self.calculate_total_exposure()

    def get_position_summary(self) -> str:
        count = self.get_position_count()
        if count == 0:
            return "Positions: none"
        return (
            f"Positions: {count} | Exposure: ${self.calculate_total_exposure():.2f} | "
            f"Value: ${self.calculate_market_value():.2f} | "
            f"P&L: ${self.calculate_unrealized_pnl():+.2f}"
        )
