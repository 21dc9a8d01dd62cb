import logging
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, insert, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shop_orders.domain.models import Order, OrderItem, OrderStatus, ProductSummary
from shop_orders.domain.exceptions import UpdateFailedError
from shop_orders.infrastructure.db_schema import (
    orders_tbl, order_items_tbl, products_tbl, user_roles_tbl
)
from shop_orders.application.interfaces import OrderRepository, RoleRepository

logger = logging.getLogger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None
        items = await self._get_items([row.id])
        return self._to_domain(row, items.get(row.id, []))

    async def list_orders(self, user_id: Optional[str] = None) -> List[Order]:
        stmt = select(orders_tbl).order_by(orders_tbl.c.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(orders_tbl.c.user_id == user_id)
        result = await self._session.execute(stmt)
        rows = result.fetchall()
        items = await self._get_items([row.id for row in rows])
        return [self._to_domain(row, items.get(row.id, [])) for row in rows]

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            status=order.status,
            payment_method=order.payment_method,
            shipping_address=order.shipping_address,
            contact_info=order.contact_info,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

    async def add_items(self, items: List[OrderItem]) -> None:
        if not items:
            return
        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "id": item.id,
                    "order_id": item.order_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price": item.price,
                }
                for item in items
            ]
        )

    async def compare_and_set_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        extra_fields: dict[str, datetime],
        owner_id: Optional[str] = None,
    ) -> int:
        values = {
            "status": new_status,
            "updated_at": datetime.now(timezone.utc),
        }
        # Дата этапа пишется только один раз
        for field, value in extra_fields.items():
            values[field] = func.coalesce(orders_tbl.c[field], value)

        stmt = (
            update(orders_tbl)
            .where(
                orders_tbl.c.id == order_id,
                orders_tbl.c.status == expected_status
            )
            .values(**values)
        )
        if owner_id is not None:
            stmt = stmt.where(orders_tbl.c.user_id == owner_id)

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Ошибка обновления статуса заказа {order_id}: {e}")
            raise UpdateFailedError(f"Не удалось обновить заказ {order_id}") from e
        return result.rowcount

    async def _get_items(self, order_ids: List[str]) -> dict[str, List[OrderItem]]:
        if not order_ids:
            return {}
        stmt = (
            select(
                order_items_tbl,
                products_tbl.c.name.label("product_name"),
                products_tbl.c.image_url.label("product_image_url")
            )
            .select_from(
                order_items_tbl.outerjoin(products_tbl, products_tbl.c.id == order_items_tbl.c.product_id)
            )
            .where(order_items_tbl.c.order_id.in_(order_ids))
        )
        result = await self._session.execute(stmt)
        grouped: dict[str, List[OrderItem]] = {}
        for row in result.fetchall():
            grouped.setdefault(row.order_id, []).append(
                OrderItem(
                    id=row.id,
                    order_id=row.order_id,
                    product_id=row.product_id,
                    quantity=row.quantity,
                    price=row.price,
                    product=self._to_product(row)
                )
            )
        return grouped

    def _to_product(self, row) -> Optional[ProductSummary]:
        # Товар мог быть удален из каталога
        if row.product_name is None:
            return None
        return ProductSummary(name=row.product_name, image_url=row.product_image_url)

    def _to_domain(self, row, items: List[OrderItem]) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            user_id=row.user_id,
            total_amount=row.total_amount,
            status=OrderStatus(row.status),
            payment_method=row.payment_method,
            shipping_address=row.shipping_address,
            contact_info=row.contact_info or {},
            created_at=row.created_at,
            updated_at=row.updated_at,
            processing_date=row.processing_date,
            shipped_date=row.shipped_date,
            delivered_date=row.delivered_date,
            items=items
        )


class SQLAlchemyRoleRepository(RoleRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def has_role(self, user_id: str, role: str) -> bool:
        result = await self._session.execute(
            select(user_roles_tbl.c.id).where(
                user_roles_tbl.c.user_id == user_id,
                user_roles_tbl.c.role == role
            )
        )
        return result.first() is not None
