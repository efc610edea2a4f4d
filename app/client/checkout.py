import asyncio
import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..config import settings
from ..exceptions import EmptyCartError
from .cart_store import CartStore

logger = logging.getLogger(__name__)


class DeliveryMethod(str, Enum):
    COURIER = "courier"
    PICKUP = "pickup"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


class CheckoutForm(BaseModel):
    first_name: str = Field(..., min_length=1, alias="firstName")
    last_name: str = Field(..., min_length=1, alias="lastName")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=1)
    address: str = ""
    comment: str = ""
    delivery_method: DeliveryMethod = Field(DeliveryMethod.COURIER, alias="deliveryMethod")
    payment_method: PaymentMethod = Field(PaymentMethod.CARD, alias="paymentMethod")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def address_required_for_courier(self):
        if self.delivery_method == DeliveryMethod.COURIER and not self.address.strip():
            raise ValueError("Delivery address is required for courier delivery")
        return self


class OrderLine(BaseModel):
    product_id: str
    name: str
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    price: float
    line_total: float


class OrderSummary(BaseModel):
    form: CheckoutForm
    lines: List[OrderLine]
    total_items: int
    total_price: float
    delivery_price: float = 0.0  # доставка бесплатная

    @property
    def grand_total(self) -> float:
        return self.total_price + self.delivery_price


class CheckoutFlow:
    """Оформление заказа: отправка имитируется, оплата не проводится"""

    def __init__(self, cart: CartStore, delay: Optional[float] = None):
        self.cart = cart
        self.delay = settings.checkout_delay_seconds if delay is None else delay

    def summarize(self, form: CheckoutForm) -> OrderSummary:
        lines = [
            OrderLine(
                product_id=item.product_id,
                name=item.name,
                size=item.size,
                color=item.color,
                quantity=item.quantity,
                price=item.price,
                line_total=item.price * item.quantity
            )
            for item in self.cart.items
        ]
        return OrderSummary(
            form=form,
            lines=lines,
            total_items=self.cart.total_items,
            total_price=self.cart.total_price
        )

    async def submit(self, form: CheckoutForm) -> OrderSummary:
        if not self.cart.items:
            raise EmptyCartError()

        summary = self.summarize(form)
        logger.info(
            f"Submitting order: {summary.total_items} items, total {summary.grand_total}, "
            f"delivery {form.delivery_method.value}, payment {form.payment_method.value}"
        )

        await asyncio.sleep(self.delay)

        self.cart.clear_cart()
        logger.info("✅ Order submitted, cart cleared")
        return summary
