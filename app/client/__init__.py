from .cart_store import CartItem, CartState, CartStore, NewCartItem
from .checkout import CheckoutFlow, CheckoutForm, DeliveryMethod, OrderSummary, PaymentMethod
from .context import StorefrontContext
from .http import AuthenticatedClient, LoggingNavigator, Navigator, build_headers
from .session import Session, SessionProvider, SessionUser

__all__ = [
    "CartItem", "CartState", "CartStore", "NewCartItem",
    "CheckoutFlow", "CheckoutForm", "DeliveryMethod", "OrderSummary", "PaymentMethod",
    "StorefrontContext",
    "AuthenticatedClient", "LoggingNavigator", "Navigator", "build_headers",
    "Session", "SessionProvider", "SessionUser",
]
