# app/models/shipping_zone_rate.py
from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.shipping_zone import ShippingZone

RATE_KIND_WEIGHT = "weight"
RATE_KIND_PRICE = "price"


class ShippingZoneRate(Base):
    """
    Surcharge rule attached to a zone.

    kind=weight: applies when the vendor group's total weight (kg) > threshold
    kind=price : applies when the vendor group's cart value > threshold
    additional_fee may be negative (discount).
    """

    __tablename__ = "shipping_zone_rates"
    __table_args__ = (
        CheckConstraint("kind IN ('weight', 'price')", name="ck_shipping_zone_rates_kind"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    zone_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("shipping_zones.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    threshold: Mapped[float] = mapped_column(Numeric(12, 3, asdecimal=False), nullable=False)
    additional_fee: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)

    zone: Mapped["ShippingZone"] = relationship("ShippingZone", back_populates="additional_rates")

    def __repr__(self) -> str:
        return (
            f"<ShippingZoneRate id={self.id} zone_id={self.zone_id} kind={self.kind} "
            f"threshold={self.threshold} additional_fee={self.additional_fee}>"
        )
