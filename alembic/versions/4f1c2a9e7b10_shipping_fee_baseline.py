"""shipping_fee_baseline

Revision ID: 4f1c2a9e7b10
Revises:
Create Date: 2026-10-18 09:12:40.118203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "4f1c2a9e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
MONEY = sa.Numeric(12, 2)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_name", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("shop_name", sa.String(length=128), nullable=True),
        sa.Column("base_region", sa.String(length=128), nullable=True),
        sa.Column("base_city", sa.String(length=128), nullable=True),
        sa.Column("shipping_preferences", JSON, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("price", MONEY, nullable=False, server_default="0"),
        sa.Column("weight_kg", sa.Numeric(10, 3), nullable=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_products_vendor_id", "products", ["vendor_id"])

    # vendor_id NULL = global zone
    op.create_table(
        "shipping_zones",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("region", sa.String(length=128), nullable=False),
        sa.Column("base_rate", MONEY, nullable=False, server_default="0"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("vendor_region", sa.String(length=128), nullable=True),
        sa.Column("same_region_cap_fee", MONEY, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("base_rate >= 0", name="ck_shipping_zones_base_rate_nonneg"),
    )
    op.create_index("ix_shipping_zones_vendor_id", "shipping_zones", ["vendor_id"])

    op.create_table(
        "shipping_zone_rates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "zone_id",
            sa.Integer(),
            sa.ForeignKey("shipping_zones.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("threshold", sa.Numeric(12, 3), nullable=False),
        sa.Column("additional_fee", MONEY, nullable=False),
        sa.CheckConstraint("kind IN ('weight', 'price')", name="ck_shipping_zone_rates_kind"),
    )
    op.create_index("ix_shipping_zone_rates_zone_id", "shipping_zone_rates", ["zone_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="processing"),
        sa.Column("cart_items", JSON, nullable=False),
        sa.Column("address_info", JSON, nullable=True),
        sa.Column("subtotal", MONEY, nullable=False, server_default="0"),
        sa.Column("total_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("shipping_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("admin_shipping_fees", JSON, nullable=False),
        sa.Column("metadata", JSON, nullable=False),
        # optimistic concurrency counter; the shipping fix updates conditionally on it
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_orders_created_at", table_name="orders")
    op.drop_index("ix_orders_user_id", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_shipping_zone_rates_zone_id", table_name="shipping_zone_rates")
    op.drop_table("shipping_zone_rates")

    op.drop_index("ix_shipping_zones_vendor_id", table_name="shipping_zones")
    op.drop_table("shipping_zones")

    op.drop_index("ix_products_vendor_id", table_name="products")
    op.drop_table("products")

    op.drop_table("users")
