from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...exceptions import PermissionDenied, ProductNotFound
from ...enums import UserRole
from ...models.user import User
from ...schemas.product import Product, ProductCreate, ProductList, ProductUpdate
from ...services.catalog_service import CatalogService, ProductSort
from ..dependencies import get_catalog_service, require_roles

router = APIRouter()

manage_products = require_roles(UserRole.ADMIN, UserRole.SELLER)


@router.get("/products", response_model=ProductList)
async def list_products(
        search: Optional[str] = Query(None, description="Поиск по названию, описанию и категории"),
        category: Optional[List[str]] = Query(None, description="Фильтр по категориям"),
        size: Optional[str] = Query(None, description="Фильтр по размеру"),
        min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
        max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
        sort: ProductSort = Query(ProductSort.NEWEST),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Публичный каталог с фильтрами и сортировкой"""
    products = catalog.list_products(
        search=search,
        categories=category,
        size=size,
        min_price=min_price,
        max_price=max_price,
        sort=sort
    )
    return ProductList(products=[Product.model_validate(p) for p in products], total=len(products))


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
        product_id: str,
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Карточка товара"""
    try:
        return Product.model_validate(catalog.get_product(product_id))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
        payload: ProductCreate,
        user: User = Depends(manage_products),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Создание товара (продавец или администратор)"""
    return Product.model_validate(catalog.create_product(user, payload))


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
        product_id: str,
        payload: ProductUpdate,
        user: User = Depends(manage_products),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Полное обновление товара"""
    if payload.missing_fields():
        raise HTTPException(status_code=400, detail="Please fill in all required fields")

    try:
        return Product.model_validate(catalog.update_product(user, product_id, payload))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/products/{product_id}")
async def delete_product(
        product_id: str,
        user: User = Depends(manage_products),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Удаление товара"""
    try:
        catalog.delete_product(user, product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"success": True}


@router.get("/admin/products", response_model=List[Product])
async def admin_products(
        user: User = Depends(require_roles(UserRole.ADMIN)),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Все товары магазина"""
    return [Product.model_validate(p) for p in catalog.list_products()]


@router.get("/seller/products", response_model=List[Product])
async def seller_products(
        user: User = Depends(require_roles(UserRole.SELLER)),
        catalog: CatalogService = Depends(get_catalog_service)
):
    """Товары текущего продавца"""
    return [Product.model_validate(p) for p in catalog.list_products(seller_id=user.id)]
