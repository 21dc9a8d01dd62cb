import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from shop_orders.domain.models import Order, OrderItem, OrderStatus
from shop_orders.domain.exceptions import MissingParamsError, UnauthenticatedError


logger = logging.getLogger(__name__)


class CreateOrderItemDTO(BaseModel):
    product_id: str
    quantity: int
    price: Decimal


class CreateOrderDTO(BaseModel):
    total_amount: Decimal
    payment_method: str
    shipping_address: str
    contact_info: dict = {}
    items: list[CreateOrderItemDTO]


class CreateOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, caller_id: Optional[str], order_data: CreateOrderDTO) -> Order:
        if not caller_id:
            raise UnauthenticatedError("Пользователь не аутентифицирован")
        if not order_data.items:
            raise MissingParamsError("Заказ без позиций")
        for item in order_data.items:
            if item.quantity <= 0 or item.price < 0:
                raise MissingParamsError(f"Некорректная позиция {item.product_id}")

        logger.info(f"Создание заказа для пользователя {caller_id}, позиций: {len(order_data.items)}")

        now = datetime.now(timezone.utc)
        order_id = str(uuid.uuid4())
        items = [
            OrderItem(
                id=str(uuid.uuid4()),
                order_id=order_id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
            )
            for item in order_data.items
        ]
        # Новый заказ всегда pending, даты этапов пустые
        order = Order(
            id=order_id,
            user_id=caller_id,
            total_amount=order_data.total_amount,
            status=OrderStatus.PENDING,
            payment_method=order_data.payment_method,
            shipping_address=order_data.shipping_address,
            contact_info=order_data.contact_info,
            created_at=now,
            updated_at=now,
            items=items,
        )

        async with self._uow() as uow:
            await uow.orders.create(order)
            await uow.orders.add_items(items)
            await uow.commit()

        logger.info(f"Заказ создан: {order.id}")
        return order
