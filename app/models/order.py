# app/models/order.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType


class Order(Base):
    """
    Customer order, shipping-relevant columns only.

    - cart_items / address_info keep the checkout payload as received
    - shipping_fee, admin_shipping_fees and meta["shipping_details"] are written by
      checkout and, as an explicit administrative exception, by the shipping fix
    - version is the optimistic-concurrency counter; every ORM flush bumps it and the
      shipping fix updates conditionally on it
    """

    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_created_at", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="processing", server_default="processing"
    )

    # [{"product_id": 1, "vendor_id": 7, "title": "...", "price": 12.5, "quantity": 2}, ...]
    cart_items: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # {"address": "...", "city": "Accra", "region": "Greater Accra", "phone": "..."}
    address_info: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    subtotal: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0, server_default="0"
    )
    total_amount: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0, server_default="0"
    )

    shipping_fee: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0, server_default="0"
    )
    # vendor key -> {fee, zone, item_count, cart_value, customer_region, rate_source, items}
    admin_shipping_fees: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # "metadata" is reserved on declarative classes, hence the attribute name
    meta: Mapped[dict] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} status={self.status} shipping_fee={self.shipping_fee} "
            f"version={self.version}>"
        )
