from pydantic import BaseModel, Field
from typing import List, Optional


class CartItemCreate(BaseModel):
    product_id: str = Field(..., alias="productId")
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

    class Config:
        populate_by_name = True


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItem(BaseModel):
    """Позиция корзины в ответе на POST/PATCH"""
    id: str
    product_id: str = Field(..., alias="productId")
    quantity: int
    price_at_addition: float = Field(..., alias="priceAtAddition")
    size: Optional[str] = None
    color: Optional[str] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class CartProductImage(BaseModel):
    url: str
    alt: Optional[str] = None

    class Config:
        from_attributes = True


class CartProduct(BaseModel):
    name: str
    images: List[CartProductImage] = []

    class Config:
        from_attributes = True


class CartLine(CartItem):
    """Позиция корзины вместе с данными товара (GET /cart)"""
    product: CartProduct


class CartSummary(BaseModel):
    items: List[CartLine]
    total_items: int = Field(..., alias="totalItems")
    total_price: float = Field(..., alias="totalPrice")

    class Config:
        populate_by_name = True
