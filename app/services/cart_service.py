import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import CartItemNotFound, InvalidVariant, OutOfStock, ProductNotFound
from ..models.cart import Cart
from ..models.cart_item import CartItem
from ..models.product import Product
from ..schemas.cart import CartItemCreate, CartItemUpdate

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create_cart(self, user_id: str) -> Cart:
        """Получить или создать корзину пользователя"""
        cart = self.db.query(Cart).filter(Cart.user_id == user_id).first()
        if not cart:
            cart = Cart(user_id=user_id)
            self.db.add(cart)
            self.db.commit()
            self.db.refresh(cart)
            logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    def get_cart(self, user_id: str) -> dict:
        """Получить корзину с подсчётом итогов"""
        cart = self.get_or_create_cart(user_id)
        items = list(cart.items)

        total_items = sum(item.quantity for item in items)
        total_price = sum(item.quantity * item.price_at_addition for item in items)

        return {
            "items": items,
            "total_items": total_items,
            "total_price": total_price,
        }

    def add_item(self, user_id: str, item_data: CartItemCreate) -> CartItem:
        """Добавить товар в корзину; одинаковый вариант увеличивает количество"""
        product = self.db.get(Product, item_data.product_id)
        if not product:
            raise ProductNotFound(item_data.product_id)

        self._check_variant(product, "size", item_data.size, product.sizes)
        self._check_variant(product, "color", item_data.color, product.colors)

        cart = self.get_or_create_cart(user_id)
        existing_item = self._find_variant(cart, item_data)

        new_quantity = item_data.quantity + (existing_item.quantity if existing_item else 0)
        if new_quantity > product.stock:
            raise OutOfStock(product.id, new_quantity, product.stock)

        if existing_item:
            # Цена фиксируется при первом добавлении
            existing_item.quantity = new_quantity
            item = existing_item
            action = "updated"
        else:
            item = CartItem(
                cart_id=cart.id,
                product_id=product.id,
                quantity=item_data.quantity,
                price_at_addition=product.price,
                size=item_data.size,
                color=item_data.color
            )
            self.db.add(item)
            action = "added"

        self.db.commit()
        self.db.refresh(item)

        logger.info(f"Cart item {item.id} {action}: product {product.id} x{item.quantity} for user {user_id}")
        return item

    def update_item(self, user_id: str, item_id: str, item_data: CartItemUpdate) -> CartItem:
        """Обновить количество товара в корзине"""
        item = self._get_user_item(user_id, item_id)

        stock = item.product.stock if item.product else 0
        if item_data.quantity > stock:
            raise OutOfStock(item.product_id, item_data.quantity, stock)

        old_quantity = item.quantity
        item.quantity = item_data.quantity
        self.db.commit()
        self.db.refresh(item)

        logger.info(f"Cart item {item_id} quantity {old_quantity} -> {item.quantity}")
        return item

    def remove_item(self, user_id: str, item_id: str) -> None:
        """Удалить товар из корзины"""
        item = self._get_user_item(user_id, item_id)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"Cart item {item_id} removed for user {user_id}")

    def _get_user_item(self, user_id: str, item_id: str) -> CartItem:
        item = (
            self.db.query(CartItem)
            .join(Cart, CartItem.cart_id == Cart.id)
            .filter(CartItem.id == item_id, Cart.user_id == user_id)
            .first()
        )
        if not item:
            raise CartItemNotFound(item_id)
        return item

    def _find_variant(self, cart: Cart, item_data: CartItemCreate) -> Optional[CartItem]:
        # NULL не сравнивается через "=", поэтому ищем вариант в Python
        for item in cart.items:
            if (item.product_id, item.size, item.color) == (item_data.product_id, item_data.size, item_data.color):
                return item
        return None

    @staticmethod
    def _check_variant(product: Product, field: str, value: Optional[str], allowed: Optional[list]) -> None:
        if value is not None and allowed and value not in allowed:
            raise InvalidVariant(product.id, field, value)
