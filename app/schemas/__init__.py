from .cart import CartItem, CartItemCreate, CartItemUpdate, CartLine, CartSummary
from .product import Product, ProductCreate, ProductUpdate, ProductList
from .auth import LoginRequest, SessionResponse, SessionUser

__all__ = [
    "CartItem", "CartItemCreate", "CartItemUpdate", "CartLine", "CartSummary",
    "Product", "ProductCreate", "ProductUpdate", "ProductList",
    "LoginRequest", "SessionResponse", "SessionUser",
]
