"""
Иерархия исключений витрины.

StorefrontError (base)
├── AuthorizationRequired
├── RequestFailed
│   ├── AddToCartFailed
│   ├── CartUpdateFailed
│   └── CartRemoveFailed
├── NetworkError
├── EmptyCartError
└── DomainError (серверная бизнес-логика)
    ├── ProductNotFound
    ├── CartItemNotFound
    ├── OutOfStock
    ├── InvalidVariant
    ├── InvalidCredentials
    └── PermissionDenied

Клиентские ошибки (Authorization/Request/Network) поднимаются до вызывающего UI-слоя.
Доменные ошибки сервисов роуты переводят в HTTPException.
"""
from typing import Optional


class StorefrontError(Exception):
    """Базовое исключение витрины"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class AuthorizationRequired(StorefrontError):
    """Нет сессии, нет токена или сервер ответил 401"""

    def __init__(self, message: str = "Authorization required", details: Optional[dict] = None):
        super().__init__(message, details)


class RequestFailed(StorefrontError):
    """Сервер ответил не-2xx статусом (кроме 401)"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict] = None):
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code


class AddToCartFailed(RequestFailed):
    pass


class CartUpdateFailed(RequestFailed):
    pass


class CartRemoveFailed(RequestFailed):
    pass


class NetworkError(StorefrontError):
    """Сбой транспорта"""
    pass


class EmptyCartError(StorefrontError):
    """Оформление заказа с пустой корзиной"""

    def __init__(self, message: str = "Your cart is empty"):
        super().__init__(message)


class DomainError(StorefrontError):
    """Ошибка бизнес-логики на стороне сервера"""
    pass


class ProductNotFound(DomainError):

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found", details={"product_id": product_id})
        self.product_id = product_id


class CartItemNotFound(DomainError):

    def __init__(self, item_id: str):
        super().__init__(f"Cart item {item_id} not found", details={"item_id": item_id})
        self.item_id = item_id


class OutOfStock(DomainError):

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            "Not enough stock",
            details={"product_id": product_id, "requested": requested, "available": available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidVariant(DomainError):

    def __init__(self, product_id: str, field: str, value: str):
        super().__init__(
            f"Product {product_id} is not available in {field} '{value}'",
            details={"product_id": product_id, field: value}
        )


class InvalidCredentials(DomainError):

    def __init__(self):
        super().__init__("Invalid email or password")


class PermissionDenied(DomainError):

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)
