"""Правила смены статуса заказа.

Администратор может перевести заказ в любой статус. Обычный пользователь
может только отменить свой заказ, пока тот в pending или processing.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from shop_orders.domain.models import OrderStatus, MILESTONE_FIELDS
from shop_orders.domain.exceptions import (
    InvalidStatusError, ForbiddenError, NotAllowedForUserError
)


class TransitionPlan(BaseModel):
    """Разрешенная запись: что выставить и при каком условии"""
    new_status: OrderStatus
    expected_status: OrderStatus
    owner_id: Optional[str] = None
    milestones: dict[str, datetime] = {}


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusError(value)


def milestone_fields(new_status: OrderStatus, now: datetime) -> dict[str, datetime]:
    field = MILESTONE_FIELDS.get(new_status)
    return {field: now} if field else {}


def decide_transition(
    caller_id: str,
    is_admin: bool,
    owner_id: str,
    current_status: OrderStatus,
    new_status: OrderStatus,
    now: datetime,
) -> TransitionPlan:
    if is_admin:
        return TransitionPlan(
            new_status=new_status,
            expected_status=current_status,
            milestones=milestone_fields(new_status, now),
        )

    if owner_id != caller_id:
        raise ForbiddenError("Заказ принадлежит другому пользователю")

    if new_status == OrderStatus.CANCELLED and current_status in (
        OrderStatus.PENDING, OrderStatus.PROCESSING
    ):
        # Отмена не трогает даты этапов
        return TransitionPlan(
            new_status=OrderStatus.CANCELLED,
            expected_status=current_status,
            owner_id=caller_id,
        )

    raise NotAllowedForUserError(
        f"Переход {current_status.value} -> {new_status.value} недоступен пользователю"
    )
