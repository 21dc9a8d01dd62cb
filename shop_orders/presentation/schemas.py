from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from shop_orders.domain.models import OrderStatus


class UpdateOrderStatusRequest(BaseModel):
    # Оба поля опциональны: отсутствие — это MISSING_PARAMS, а не 422
    order_id: Optional[str] = Field(None, alias="orderId")
    new_status: Optional[str] = Field(None, alias="newStatus")


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int
    price: Decimal


class CreateOrderRequest(BaseModel):
    total_amount: Decimal
    payment_method: str
    shipping_address: str
    contact_info: dict = {}
    items: List[OrderItemRequest] = []


class ProductResponse(BaseModel):
    name: str
    image_url: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal
    product: Optional[ProductResponse] = None


class OrderResponse(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    status: OrderStatus
    status_display: str
    payment_method: str
    shipping_address: str
    contact_info: dict
    created_at: datetime
    updated_at: datetime
    processing_date: Optional[datetime] = None
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    order_items: List[OrderItemResponse] = []

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            status=order.status,
            status_display=order.status.display,
            payment_method=order.payment_method,
            shipping_address=order.shipping_address,
            contact_info=order.contact_info,
            created_at=order.created_at,
            updated_at=order.updated_at,
            processing_date=order.processing_date,
            shipped_date=order.shipped_date,
            delivered_date=order.delivered_date,
            order_items=[OrderItemResponse(**item.model_dump()) for item in order.items]
        )
