from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import CartItemNotFound, InvalidVariant, OutOfStock, ProductNotFound
from ...models.user import User
from ...schemas.cart import CartItem, CartItemCreate, CartItemUpdate, CartLine, CartSummary
from ...services.cart_service import CartService
from ..dependencies import get_cart_service, get_current_user

router = APIRouter()


@router.get("/cart", response_model=CartSummary)
async def get_cart(
        user: User = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Получение текущей корзины пользователя"""
    summary = cart_service.get_cart(user.id)
    return CartSummary(
        items=[CartLine.model_validate(item) for item in summary["items"]],
        total_items=summary["total_items"],
        total_price=summary["total_price"]
    )


@router.post("/cart", response_model=CartItem, status_code=status.HTTP_201_CREATED)
async def add_item_to_cart(
        item: CartItemCreate,
        user: User = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Добавление товара в корзину"""
    try:
        created = cart_service.add_item(user.id, item)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (OutOfStock, InvalidVariant) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CartItem.model_validate(created)


@router.patch("/cart/items/{item_id}", response_model=CartItem)
async def update_cart_item(
        item_id: str,
        item: CartItemUpdate,
        user: User = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Обновление количества товара в корзине"""
    try:
        updated = cart_service.update_item(user.id, item_id, item)
    except CartItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OutOfStock as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CartItem.model_validate(updated)


@router.delete("/cart/items/{item_id}")
async def remove_item_from_cart(
        item_id: str,
        user: User = Depends(get_current_user),
        cart_service: CartService = Depends(get_cart_service)
):
    """Удаление товара из корзины"""
    try:
        cart_service.remove_item(user.id, item_id)
    except CartItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}
