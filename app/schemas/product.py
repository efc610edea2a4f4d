from datetime import datetime
from pydantic import BaseModel, Field
from typing import ClassVar, List, Optional, Tuple

from .cart import CartProductImage


class ProductImageIn(BaseModel):
    url: str
    alt: Optional[str] = None


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    sizes: List[str] = []
    colors: List[str] = []
    stock: int = Field(0, ge=0)
    images: List[ProductImageIn] = []


class ProductUpdate(BaseModel):
    """Все поля опциональны: обязательность проверяет роут, чтобы вернуть 400"""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[ProductImageIn]] = None

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "description", "price", "category", "sizes", "colors", "stock")

    def missing_fields(self) -> List[str]:
        missing = []
        for field in self.REQUIRED_FIELDS:
            value = getattr(self, field)
            if value is None or (isinstance(value, (str, list)) and not value):
                missing.append(field)
        return missing


class Product(BaseModel):
    id: str
    name: str
    description: str
    price: float
    category: str
    sizes: List[str] = []
    colors: List[str] = []
    stock: int
    images: List[CartProductImage] = []
    seller_id: Optional[str] = Field(None, alias="sellerId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class ProductList(BaseModel):
    products: List[Product]
    total: int
