from sqlalchemy import (
    Table, Column, String, Integer, Numeric, Enum, DateTime, JSON, MetaData, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func

from shop_orders.domain.models import OrderStatus

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("total_amount", Numeric(12, 2), nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING,
    ),
    Column("payment_method", String, nullable=False),
    Column("shipping_address", String, nullable=False),
    Column("contact_info", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    Column("processing_date", DateTime(timezone=True), nullable=True),
    Column("shipped_date", DateTime(timezone=True), nullable=True),
    Column("delivered_date", DateTime(timezone=True), nullable=True),
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_id", String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    CheckConstraint("price >= 0", name="ck_order_items_price_non_negative"),
)


# Каталог ведется отдельно, сервис заказов только читает название и картинку
products_tbl = Table(
    "products",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("image_url", String, nullable=True),
)


user_roles_tbl = Table(
    "user_roles",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("role", String, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
)
