# app/models/product.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    price: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0, server_default="0"
    )

    # declared shipping weight; NULL means "unknown" and the calculator assumes a default
    weight_kg: Mapped[Optional[float]] = mapped_column(Numeric(10, 3, asdecimal=False), nullable=True)

    vendor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} vendor_id={self.vendor_id}>"
