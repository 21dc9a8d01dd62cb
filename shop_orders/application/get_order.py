from shop_orders.domain.models import Order, ADMIN_ROLE
from shop_orders.domain.exceptions import (
    OrderNotFoundError, ForbiddenError, UnauthenticatedError
)


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, caller_id: str, order_id: str) -> Order:
        if not caller_id:
            raise UnauthenticatedError("Пользователь не аутентифицирован")
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            if not order.is_owned_by(caller_id) and not await uow.roles.has_role(caller_id, ADMIN_ROLE):
                raise ForbiddenError("Заказ принадлежит другому пользователю")
            return order
