# Импорт всех моделей, чтобы они попали в Base.metadata
from ..enums import UserRole
from .user import User
from .product import Product, ProductImage
from .cart import Cart
from .cart_item import CartItem

__all__ = ["User", "UserRole", "Product", "ProductImage", "Cart", "CartItem"]
