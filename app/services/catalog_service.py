import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..exceptions import PermissionDenied, ProductNotFound
from ..models.product import Product, ProductImage
from ..enums import UserRole
from ..models.user import User
from ..schemas.product import ProductCreate, ProductImageIn, ProductUpdate

logger = logging.getLogger(__name__)


class ProductSort(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


_ORDERING = {
    ProductSort.NEWEST: (Product.created_at.desc(),),
    ProductSort.PRICE_ASC: (Product.price.asc(),),
    ProductSort.PRICE_DESC: (Product.price.desc(),),
    ProductSort.NAME_ASC: (Product.name.asc(),),
    ProductSort.NAME_DESC: (Product.name.desc(),),
}


class CatalogService:
    """Каталог товаров: публичный поиск и управление товарами продавцов"""

    def __init__(self, db: Session):
        self.db = db

    def list_products(
            self,
            search: Optional[str] = None,
            categories: Optional[List[str]] = None,
            size: Optional[str] = None,
            min_price: Optional[float] = None,
            max_price: Optional[float] = None,
            sort: ProductSort = ProductSort.NEWEST,
            seller_id: Optional[str] = None
    ) -> List[Product]:
        """Список товаров с фильтрами и сортировкой"""
        query = self.db.query(Product)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                Product.name.ilike(pattern),
                Product.description.ilike(pattern),
                Product.category.ilike(pattern)
            ))
        if categories:
            query = query.filter(Product.category.in_(categories))
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)
        if seller_id:
            query = query.filter(Product.seller_id == seller_id)

        products = query.order_by(*_ORDERING[sort], Product.id).all()

        # sizes хранится в JSON, фильтр переносимо делаем в Python
        if size:
            products = [p for p in products if size in (p.sizes or [])]

        return products

    def get_product(self, product_id: str) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def create_product(self, owner: User, data: ProductCreate) -> Product:
        """Создать товар от имени продавца или администратора"""
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price,
            category=data.category,
            sizes=list(data.sizes),
            colors=list(data.colors),
            stock=data.stock,
            seller_id=owner.id
        )
        product.images = self._build_images(data.images)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)

        logger.info(f"Product {product.id} created by {owner.id}")
        return product

    def update_product(self, actor: User, product_id: str, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        self._check_owner(actor, product)

        for field in ProductUpdate.REQUIRED_FIELDS:
            setattr(product, field, getattr(data, field))
        if data.images is not None:
            product.images = self._build_images(data.images)

        self.db.commit()
        self.db.refresh(product)

        logger.info(f"Product {product_id} updated by {actor.id}")
        return product

    def delete_product(self, actor: User, product_id: str) -> None:
        product = self.get_product(product_id)
        self._check_owner(actor, product)
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Product {product_id} deleted by {actor.id}")

    @staticmethod
    def _check_owner(actor: User, product: Product) -> None:
        # Продавец управляет только своими товарами, администратор любыми
        if actor.role == UserRole.SELLER and product.seller_id != actor.id:
            raise PermissionDenied("You can only manage your own products")

    @staticmethod
    def _build_images(images: List[ProductImageIn]) -> List[ProductImage]:
        return [
            ProductImage(url=image.url, alt=image.alt, position=position)
            for position, image in enumerate(images)
        ]
