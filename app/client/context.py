import logging
from typing import Optional

import httpx

from .cart_store import CartStore
from .checkout import CheckoutFlow
from .http import AuthenticatedClient, Navigator
from .session import Session, SessionProvider

logger = logging.getLogger(__name__)


class StorefrontContext:
    """Корень клиентского приложения: сессия, HTTP-клиент, корзина и оформление заказа"""

    def __init__(
            self,
            session: Optional[Session] = None,
            base_url: Optional[str] = None,
            navigator: Optional[Navigator] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.session_provider = SessionProvider(session, base_url=base_url, transport=transport)
        self.client = AuthenticatedClient(
            self.session_provider,
            base_url=base_url,
            navigator=navigator,
            transport=transport
        )
        self.cart = CartStore(self.client, self.session_provider)
        self.checkout = CheckoutFlow(self.cart)

    async def __aenter__(self) -> "StorefrontContext":
        try:
            await self.cart.mount()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        self.cart.unmount()
        await self.client.aclose()
        logger.info("Storefront context closed")
