"""
CLOB Gateway

Thin async wrapper around py_clob_client. Every response is normalized
into the schemas in autotrader.polymarket.schemas before it leaves this
module.
"""

from decimal import Decimal
from typing import Any, Optional
import asyncio
import logging

from py_clob_client.client import ClobClient
from py_clob_client.clob_types import (
    AssetType,
    BalanceAllowanceParams,
    OrderArgs,
    OrderType,
)
from py_clob_client.order_builder.constants import BUY, SELL

from autotrader.polymarket.gamma import MarketDataError
from autotrader.polymarket.schemas import (
    BalanceAllowance,
    ClobMarket,
    OrderBookLevel,
    OrderBookSnapshot,
    OrderPostResponse,
)
from autotrader.trading.config import VenueSettings

logger = logging.getLogger(__name__)


class ClobGateway:
    """
    Market data, balance and order submission against the CLOB.

    Blocking client calls run in a worker thread so a slow venue call
    never stalls other timers on the event loop.
    """

    def __init__(self, client: ClobClient, address: Optional[str] = None):
        self._client = client
        self.address = address or client.get_address()

    @classmethod
    def from_settings(cls, settings: VenueSettings) -> "ClobGateway":
        """Create an authenticated gateway (derives L2 API credentials)."""
        if settings.signature_type == 0:
            client = ClobClient(
                settings.clob_url,
                key=settings.private_key,
                chain_id=settings.chain_id,
                signature_type=0,
            )
        else:
            client = ClobClient(
                settings.clob_url,
                key=settings.private_key,
                chain_id=settings.chain_id,
                signature_type=settings.signature_type,
                funder=settings.proxy_address,
            )
        creds = client.create_or_derive_api_creds()
        client.set_api_creds(creds)
        logger.info(f"CLOB client ready (signature_type={settings.signature_type})")
        return cls(client, address=settings.proxy_address)

    async def get_price(self, token_id: str, side: str = BUY) -> Decimal:
        """Best price for a token on one side of the book."""
        try:
            response = await asyncio.to_thread(self._client.get_price, token_id, side)
            return Decimal(str(response["price"]))
        except Exception as e:
            raise MarketDataError(f"Price fetch failed for {token_id[:16]}: {e}") from e

    async def get_order_book(self, token_id: str) -> OrderBookSnapshot:
        try:
            book = await asyncio.to_thread(self._client.get_order_book, token_id)
        except Exception as e:
            raise MarketDataError(f"Order book fetch failed for {token_id[:16]}: {e}") from e
        return OrderBookSnapshot(
            token_id=token_id,
            bids=[OrderBookLevel(price=Decimal(b.price), size=Decimal(b.size)) for b in book.bids or []],
            asks=[OrderBookLevel(price=Decimal(a.price), size=Decimal(a.size)) for a in book.asks or []],
        )

    async def get_market(self, condition_id: str) -> ClobMarket:
        try:
            raw = await asyncio.to_thread(self._client.get_market, condition_id)
            return ClobMarket.model_validate(raw)
        except Exception as e:
            raise MarketDataError(f"Market fetch failed for {condition_id[:16]}: {e}") from e

    async def get_balance(self) -> Decimal:
        """Venue collateral (USDC) balance."""
        params = BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)
        raw = await asyncio.to_thread(self._client.get_balance_allowance, params)
        return BalanceAllowance.model_validate(raw).usdc

    async def refresh_collateral(self) -> None:
        """Ask the venue to re-read on-chain collateral after a deposit."""
        params = BalanceAllowanceParams(asset_type=AssetType.COLLATERAL)
        await asyncio.to_thread(self._client.update_balance_allowance, params)

    async def create_order(
        self,
        token_id: str,
        side: str,
        price: Decimal,
        shares: Decimal,
    ) -> Any:
        """Build and sign an order. Returns the client's signed order object."""
        order_args = OrderArgs(
            token_id=token_id,
            price=float(price),
            size=float(shares),
            side=BUY if side.upper() == "BUY" else SELL,
        )
        return await asyncio.to_thread(self._client.create_order, order_args)

    async def submit_order(self, signed_order: Any, order_type: str = "GTC") -> OrderPostResponse:
        """
        Post a signed order.

        Venue rejections raise from the client; the message is kept intact
        so callers can recognize balance/allowance failures.
        """
        raw = await asyncio.to_thread(
            self._client.post_order, signed_order, getattr(OrderType, order_type)
        )
        return OrderPostResponse.model_validate(raw or {})
