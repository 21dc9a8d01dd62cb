from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from shop_orders.domain.models import Order, OrderItem, OrderStatus, Caller


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_orders(self, user_id: Optional[str] = None) -> List[Order]:
        """Заказы по убыванию created_at; user_id=None — все заказы"""
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def add_items(self, items: List[OrderItem]) -> None:
        pass

    @abstractmethod
    async def compare_and_set_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        extra_fields: dict[str, datetime],
        owner_id: Optional[str] = None,
    ) -> int:
        """Меняет статус, только если он все еще равен expected_status.

        Поля из extra_fields записываются, только если они еще не заданы.
        Возвращает количество измененных строк.
        """
        pass


class RoleRepository(ABC):
    @abstractmethod
    async def has_role(self, user_id: str, role: str) -> bool:
        pass


class AuthService(ABC):
    @abstractmethod
    async def get_caller(self, authorization: Optional[str]) -> Caller:
        pass
