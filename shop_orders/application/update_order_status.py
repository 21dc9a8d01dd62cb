import logging
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel

from shop_orders.domain.models import OrderStatus, ADMIN_ROLE
from shop_orders.domain.policy import decide_transition, parse_status
from shop_orders.domain.exceptions import (
    DomainException, OrderNotFoundError, UnauthenticatedError, ConcurrentModificationError
)

logger = logging.getLogger(__name__)


class UpdateOrderStatusDTO(BaseModel):
    order_id: str
    new_status: str


class UpdateOrderStatusUseCase:
    """Единственная точка смены статуса заказа.

    Чтение заказа и условная запись идут в одной транзакции, а UPDATE
    повторяет проверку статуса (compare-and-set). Если строка не обновилась,
    значит статус успели поменять: читаем и решаем заново, пока есть попытки.
    """

    def __init__(self, unit_of_work, max_attempts: int = 2, clock=None):
        self._uow = unit_of_work
        self._max_attempts = max(1, max_attempts)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def __call__(self, caller_id: Optional[str], dto: UpdateOrderStatusDTO) -> OrderStatus:
        if not caller_id:
            raise UnauthenticatedError("Пользователь не аутентифицирован")

        new_status = parse_status(dto.new_status)
        logger.info(f"Смена статуса заказа {dto.order_id} на {new_status.value}, пользователь {caller_id}")

        for attempt in range(1, self._max_attempts + 1):
            async with self._uow() as uow:
                is_admin = await uow.roles.has_role(caller_id, ADMIN_ROLE)

                order = await uow.orders.get_by_id(dto.order_id)
                if not order:
                    raise OrderNotFoundError(f"Заказ {dto.order_id} не найден")

                try:
                    plan = decide_transition(
                        caller_id=caller_id,
                        is_admin=is_admin,
                        owner_id=order.user_id,
                        current_status=order.status,
                        new_status=new_status,
                        now=self._clock(),
                    )
                except DomainException as e:
                    logger.info(f"Отказ в смене статуса заказа {order.id}: {e}")
                    raise

                rows = await uow.orders.compare_and_set_status(
                    order_id=order.id,
                    expected_status=plan.expected_status,
                    new_status=plan.new_status,
                    extra_fields=plan.milestones,
                    owner_id=plan.owner_id,
                )
                if rows:
                    await uow.commit()
                    logger.info(
                        f"Заказ {order.id}: {order.status.value} -> {plan.new_status.value}"
                        f" ({'admin' if is_admin else 'owner'})"
                    )
                    return plan.new_status

            logger.warning(
                f"Конфликт при смене статуса заказа {dto.order_id} "
                f"(попытка {attempt}/{self._max_attempts})"
            )

        raise ConcurrentModificationError(dto.order_id, self._max_attempts)
