import logging
from typing import List

from shop_orders.domain.models import Order, ADMIN_ROLE
from shop_orders.domain.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


class ListOrdersUseCase:
    """Администратор видит все заказы, остальные — только свои"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, caller_id: str) -> List[Order]:
        if not caller_id:
            raise UnauthenticatedError("Пользователь не аутентифицирован")
        async with self._uow() as uow:
            is_admin = await uow.roles.has_role(caller_id, ADMIN_ROLE)
            orders = await uow.orders.list_orders(None if is_admin else caller_id)
            logger.info(f"Пользователь {caller_id} получил {len(orders)} заказов")
            return orders
