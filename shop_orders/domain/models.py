from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def display(self) -> str:
        return STATUS_DISPLAY[self]


STATUS_DISPLAY = {
    OrderStatus.PENDING: "Order Placed",
    OrderStatus.PROCESSING: "Processing Order",
    OrderStatus.SHIPPED: "Order Shipped",
    OrderStatus.DELIVERED: "Order Delivered",
    OrderStatus.CANCELLED: "Order Cancelled",
}

# Статус -> поле даты, которое выставляется при первом переходе в статус
MILESTONE_FIELDS = {
    OrderStatus.PROCESSING: "processing_date",
    OrderStatus.SHIPPED: "shipped_date",
    OrderStatus.DELIVERED: "delivered_date",
}

ADMIN_ROLE = "admin"


class ProductSummary(BaseModel):
    """Витринные данные товара для позиции заказа"""
    name: str
    image_url: Optional[str] = None


class OrderItem(BaseModel):
    """Value Object — позиция заказа"""
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal
    product: Optional[ProductSummary] = None


class Order(BaseModel):
    """Domain Entity — заказ"""
    id: str
    user_id: str
    total_amount: Decimal
    status: OrderStatus
    payment_method: str
    shipping_address: str
    contact_info: dict = {}
    created_at: datetime
    updated_at: datetime
    processing_date: Optional[datetime] = None
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    items: list[OrderItem] = []

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id


class Caller(BaseModel):
    """Аутентифицированный пользователь, выполняющий запрос"""
    id: str
    email: Optional[str] = None
