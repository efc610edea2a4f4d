import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, Hashable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

from ..exceptions import (
    AddToCartFailed,
    CartRemoveFailed,
    CartUpdateFailed,
    RequestFailed,
    StorefrontError,
)
from .http import AuthenticatedClient, error_message
from .session import Session, SessionProvider

logger = logging.getLogger(__name__)

VariantKey = Tuple[str, Optional[str], Optional[str]]


class CartState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOADED = "loaded"


class NewCartItem(BaseModel):
    """Что передаёт витрина при добавлении: товар и выбранный вариант"""
    product_id: str = Field(..., alias="productId")
    name: str = ""
    price: float = 0.0
    image: str = ""
    size: Optional[str] = None
    color: Optional[str] = None

    class Config:
        populate_by_name = True

    @property
    def variant_key(self) -> VariantKey:
        return self.product_id, self.size, self.color


class CartItem(NewCartItem):
    id: str
    quantity: int = Field(1, ge=1)

    @classmethod
    def from_server(cls, data: Mapping[str, Any]) -> "CartItem":
        """Позиция из GET /api/cart; цена берётся зафиксированная при добавлении"""
        product = data.get("product") or {}
        images = product.get("images") or []
        return cls(
            id=str(data["id"]),
            product_id=str(data["productId"]),
            name=product.get("name") or "",
            price=float(data["priceAtAddition"]),
            image=(images[0].get("url") or "") if images else "",
            quantity=data["quantity"],
            size=data.get("size"),
            color=data.get("color")
        )


class CartStore:
    """
    Локальное зеркало серверной корзины.

    Состояние меняется только после успешного ответа сервера.
    Мутации одной позиции выполняются по очереди (asyncio.Lock на вариант),
    разные позиции обновляются параллельно.
    """

    def __init__(self, client: AuthenticatedClient, session_provider: SessionProvider):
        self.client = client
        self.session_provider = session_provider
        self.state = CartState.UNINITIALIZED
        self._items: List[CartItem] = []
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._lock_users: Dict[Hashable, int] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> float:
        return sum(item.price * item.quantity for item in self._items)

    async def mount(self) -> None:
        """Подписаться на смену сессии и загрузить корзину"""
        if self._unsubscribe is None:
            self._unsubscribe = self.session_provider.subscribe(self._on_session_change)
        await self.load()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_session_change(self, session: Optional[Session]) -> None:
        await self.load()

    async def load(self) -> None:
        """Заменить локальный список корзиной с сервера"""
        if not self.session_provider.is_authenticated:
            self._items = []
            self.state = CartState.LOADED
            return

        self.state = CartState.LOADING
        try:
            response = await self.client.get("/api/cart")
            if not response.is_success:
                raise RequestFailed(error_message(response, "Failed to load cart"), response.status_code)

            data = response.json()
            self._items = [CartItem.from_server(item) for item in data.get("items", [])]
            logger.info(f"Cart loaded: {len(self._items)} lines, {self.total_items} items")
        except StorefrontError as e:
            logger.error(f"❌ Failed to load cart: {e}")
            raise
        finally:
            self.state = CartState.LOADED

    async def add_to_cart(self, item: Union[NewCartItem, Mapping[str, Any]]) -> CartItem:
        """Добавить одну единицу товара; повторное добавление варианта увеличивает количество"""
        new_item = item if isinstance(item, NewCartItem) else NewCartItem.model_validate(item)

        async with self._line_lock(new_item.variant_key):
            payload: Dict[str, Any] = {"productId": new_item.product_id, "quantity": 1}
            if new_item.size is not None:
                payload["size"] = new_item.size
            if new_item.color is not None:
                payload["color"] = new_item.color

            response = await self.client.post("/api/cart", json=payload)
            if not response.is_success:
                message = error_message(response, "Failed to add item to cart")
                logger.error(f"❌ Add to cart failed for product {new_item.product_id}: {message}")
                raise AddToCartFailed(message, response.status_code, details={"product_id": new_item.product_id})

            data = response.json()
            existing = self._find_variant(new_item.variant_key)

            if existing:
                line = existing.model_copy(update={"quantity": existing.quantity + 1})
                self._replace(line)
            else:
                price = data.get("priceAtAddition")
                if price is None:
                    price = new_item.price
                line = CartItem(
                    **new_item.model_dump(exclude={"price"}),
                    price=float(price),
                    id=str(data["id"]),
                    quantity=1
                )
                self._items = [*self._items, line]

            logger.info(f"Added product {new_item.product_id} to cart line {line.id} (quantity {line.quantity})")
            return line

    async def remove_from_cart(self, item_id: str) -> None:
        async with self._line_lock(self._line_key(item_id)):
            response = await self.client.delete(f"/api/cart/items/{item_id}")
            if not response.is_success:
                message = error_message(response, "Failed to remove item from cart")
                logger.error(f"❌ Remove cart line {item_id} failed: {message}")
                raise CartRemoveFailed(message, response.status_code, details={"item_id": item_id})

            self._items = [item for item in self._items if item.id != item_id]
            logger.info(f"Removed cart line {item_id}")

    async def update_quantity(self, item_id: str, quantity: int) -> None:
        """Изменить количество; меньше единицы означает удаление позиции"""
        if quantity < 1:
            await self.remove_from_cart(item_id)
            return

        async with self._line_lock(self._line_key(item_id)):
            response = await self.client.patch(f"/api/cart/items/{item_id}", json={"quantity": quantity})
            if not response.is_success:
                message = error_message(response, "Failed to update item quantity")
                logger.error(f"❌ Update cart line {item_id} failed: {message}")
                raise CartUpdateFailed(message, response.status_code, details={"item_id": item_id})

            self._items = [
                item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
                for item in self._items
            ]
            logger.info(f"Cart line {item_id} quantity set to {quantity}")

    def clear_cart(self) -> None:
        # Только локально: серверная корзина не трогается
        self._items = []

    def _find_variant(self, key: VariantKey) -> Optional[CartItem]:
        return next((item for item in self._items if item.variant_key == key), None)

    def _replace(self, line: CartItem) -> None:
        self._items = [line if item.id == line.id else item for item in self._items]

    def _line_key(self, item_id: str) -> Hashable:
        # Позиции известны по варианту, неизвестные локально - по id
        item = next((i for i in self._items if i.id == item_id), None)
        return item.variant_key if item else ("id", item_id)

    @asynccontextmanager
    async def _line_lock(self, key: Hashable) -> AsyncIterator[None]:
        """Очередь мутаций одной позиции; замок удаляется, когда его никто не ждёт"""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
