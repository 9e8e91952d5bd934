# app/models/shipping_zone.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.shipping_zone_rate import ShippingZoneRate


class ShippingZone(Base):
    """
    Vendor-configured shipping rate for a destination region.

    - vendor_id NULL marks a global (platform-wide) zone
    - at most one is_default zone per vendor; kept by the zone service, not by a DB constraint
    - vendor_region is a denormalised copy of the vendor's base_region
    """

    __tablename__ = "shipping_zones"
    __table_args__ = (
        CheckConstraint("base_rate >= 0", name="ck_shipping_zones_base_rate_nonneg"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    vendor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    region: Mapped[str] = mapped_column(String(128), nullable=False)

    base_rate: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0, server_default="0"
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    vendor_region: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    same_region_cap_fee: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    additional_rates: Mapped[List["ShippingZoneRate"]] = relationship(
        "ShippingZoneRate",
        back_populates="zone",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ShippingZoneRate.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<ShippingZone id={self.id} vendor_id={self.vendor_id} name={self.name!r} "
            f"region={self.region!r} base_rate={self.base_rate}>"
        )
