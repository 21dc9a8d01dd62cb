import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List

import pytest

from shop_orders.application.interfaces import OrderRepository, RoleRepository, AuthService
from shop_orders.application.update_order_status import UpdateOrderStatusUseCase
from shop_orders.domain.models import Order, OrderItem, OrderStatus, Caller, ADMIN_ROLE
from shop_orders.domain.exceptions import UnauthenticatedError

NOW = datetime(2025, 8, 11, 12, 0, tzinfo=timezone.utc)
CREATED = datetime(2025, 8, 10, 9, 30, tzinfo=timezone.utc)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.cas_calls = 0
        # Вызывается один раз перед следующим compare_and_set_status
        self.before_cas = None
        # Отдать управление после чтения, чтобы конкурентные вызовы перемешались
        self.yield_after_read = False

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self.orders.get(order_id)
        snapshot = order.model_copy(deep=True) if order else None
        if self.yield_after_read:
            await asyncio.sleep(0)
        return snapshot

    async def list_orders(self, user_id: Optional[str] = None) -> List[Order]:
        orders = [o for o in self.orders.values() if user_id is None or o.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def create(self, order: Order) -> None:
        self.orders[order.id] = order.model_copy(update={"items": []})

    async def add_items(self, items: List[OrderItem]) -> None:
        for item in items:
            self.orders[item.order_id].items.append(item)

    async def compare_and_set_status(self, order_id, expected_status, new_status, extra_fields, owner_id=None) -> int:
        self.cas_calls += 1
        if self.before_cas:
            hook, self.before_cas = self.before_cas, None
            hook(self)

        order = self.orders.get(order_id)
        if order is None or order.status != expected_status:
            return 0
        if owner_id is not None and order.user_id != owner_id:
            return 0

        update = {"status": new_status, "updated_at": NOW}
        for field, value in extra_fields.items():
            if getattr(order, field) is None:
                update[field] = value
        self.orders[order_id] = order.model_copy(update=update)
        return 1


class InMemoryRoleRepository(RoleRepository):
    def __init__(self):
        self.roles: set[tuple[str, str]] = set()
        self.lookups = 0

    async def has_role(self, user_id: str, role: str) -> bool:
        self.lookups += 1
        return (user_id, role) in self.roles


class FakeUnitOfWork:
    def __init__(self, orders: InMemoryOrderRepository, roles: InMemoryRoleRepository):
        self.orders = orders
        self.roles = roles
        self.commits = 0

    @asynccontextmanager
    async def __call__(self):
        yield self

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        pass


class FakeAuthService(AuthService):
    def __init__(self, tokens: dict[str, str]):
        self._tokens = tokens

    async def get_caller(self, authorization: Optional[str]) -> Caller:
        token = (authorization or "").removeprefix("Bearer ")
        if token not in self._tokens:
            raise UnauthenticatedError("Токен не принят")
        return Caller(id=self._tokens[token])


@pytest.fixture()
def orders_repo():
    return InMemoryOrderRepository()


@pytest.fixture()
def roles_repo():
    repo = InMemoryRoleRepository()
    repo.roles.add(("A1", ADMIN_ROLE))
    return repo


@pytest.fixture()
def uow(orders_repo, roles_repo):
    return FakeUnitOfWork(orders_repo, roles_repo)


@pytest.fixture()
def add_order(orders_repo):
    def _add(order_id: str, user_id: str, status: OrderStatus = OrderStatus.PENDING, **fields) -> Order:
        order = Order(
            id=order_id,
            user_id=user_id,
            total_amount=Decimal("49.90"),
            status=status,
            payment_method="card",
            shipping_address="Main st. 1",
            contact_info={"phone": "+100000000"},
            created_at=fields.pop("created_at", CREATED),
            updated_at=CREATED,
            **fields
        )
        orders_repo.orders[order_id] = order
        return order
    return _add


@pytest.fixture()
def update_status(uow):
    return UpdateOrderStatusUseCase(uow, max_attempts=2, clock=lambda: NOW)
