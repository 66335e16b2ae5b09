"""
Market Scanner

Produces candidate opportunities from either a fixed allow-list of
markets or the active-market listing. Markets already held are skipped,
and one failing market never fails the whole scan.
"""

from decimal import Decimal
from typing import Any, Callable, FrozenSet, List, Optional, Sequence
import logging

from autotrader.polymarket.schemas import GammaMarket
from autotrader.trading.models import Opportunity

logger = logging.getLogger(__name__)


class MarketScanner:
    """
    Args:
        market_data: Gamma client (get_market / list_active_markets)
        clob: CLOB gateway (get_price)
        market_ids: Condition-id allow-list; empty means scan all
        held_markets: Returns a snapshot of held market ids
        scan_limit: Markets fetched per scan in scan-all mode
    """

    def __init__(
        self,
        market_data: Any,
        clob: Any,
        market_ids: Sequence[str] = (),
        held_markets: Optional[Callable[[], FrozenSet[str]]] = None,
        scan_limit: int = 50,
    ):
        self._market_data = market_data
        self._clob = clob
        self._market_ids = tuple(market_ids)
        self._held_markets = held_markets or frozenset
        self._scan_limit = scan_limit

    @property
    def scan_all(self) -> bool:
        return not self._market_ids

    async def _load_universe(self, held: FrozenSet[str]) -> List[GammaMarket]:
        if self.scan_all:
            markets = await self._market_data.list_active_markets(self._scan_limit)
            return [m for m in markets if m.condition_id not in held]

        markets = []
        for market_id in self._market_ids:
            if market_id in held:
                logger.debug(f"Skipping held market {market_id[:12]}")
                continue
            try:
                market = await self._market_data.get_market(market_id)
            except Exception as e:
                logger.warning(f"Skipping market {market_id[:12]}: {e}")
                continue
            if market is None:
                logger.warning(f"Market {market_id[:12]} not found")
                continue
            markets.append(market)
        return markets

    async def _price_outcomes(self, market: GammaMarket) -> List[Opportunity]:
        """One opportunity per outcome, priced from the order book."""
        outcomes = market.outcomes
        tokens = market.clob_token_ids

        prices: List[Decimal] = []
        if len(tokens) == len(outcomes) and tokens:
            for token_id in tokens:
                prices.append(await self._clob.get_price(token_id))
        elif len(market.outcome_prices) == len(outcomes):
            prices = list(market.outcome_prices)
        else:
            raise ValueError("no token ids or prices for outcomes")

        opportunities = []
        for index, outcome in enumerate(outcomes):
            complement_outcome = None
            complement_token = None
            if market.is_binary:
                other = 1 - index
                complement_outcome = outcomes[other]
                complement_token = tokens[other] if other < len(tokens) else None

            opportunities.append(Opportunity(
                market_id=market.condition_id,
                outcome=outcome.upper(),
                current_price=prices[index],
                question=market.question,
                token_id=tokens[index] if index < len(tokens) else None,
                complement_outcome=complement_outcome.upper() if complement_outcome else None,
                complement_token_id=complement_token,
                neg_risk=market.neg_risk,
            ))
        return opportunities

    async def find_opportunities(self) -> List[Opportunity]:
        """Scan the market universe. Never raises for a single bad market."""
        held = frozenset(self._held_markets())

        try:
            markets = await self._load_universe(held)
        except Exception as e:
            logger.warning(f"Market listing failed: {e}")
            return []

        opportunities: List[Opportunity] = []
        for market in markets:
            if not market.is_tradeable:
                logger.debug(f"Skipping inactive market {market.condition_id[:12]}")
                continue
            try:
                opportunities.extend(await self._price_outcomes(market))
            except Exception as e:
                logger.warning(f"Skipping market {market.condition_id[:12]}: {e}")
                continue

        logger.info(
            f"Scan complete: {len(opportunities)} opportunities "
            f"from {len(markets)} markets ({len(held)} held)"
        )
        return opportunities
