from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shop_orders.application.interfaces import OrderRepository, RoleRepository
from shop_orders.infrastructure.repositories import (
    SQLAlchemyOrderRepository,
    SQLAlchemyRoleRepository
)


class UnitOfWork:
    """Одна сессия на один сценарий; без commit() все изменения откатываются"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator["SQLAlchemyUnitOfWork"]:
        async with self._session_factory() as session:
            uow = SQLAlchemyUnitOfWork(session)
            try:
                yield uow
            finally:
                if not uow.committed:
                    await session.rollback()


class SQLAlchemyUnitOfWork:
    orders: OrderRepository
    roles: RoleRepository

    def __init__(self, session: AsyncSession):
        self._session = session
        self.orders = SQLAlchemyOrderRepository(session)
        self.roles = SQLAlchemyRoleRepository(session)
        self.committed = False

    async def commit(self):
        await self._session.commit()
        self.committed = True

    async def rollback(self):
        await self._session.rollback()
        self.committed = False
