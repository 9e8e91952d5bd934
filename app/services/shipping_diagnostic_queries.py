# app/services/shipping_diagnostic_queries.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.models.order import Order
from app.models.shipping_zone import ShippingZone


def load_relevant_zones(db: Session, vendor_ids: Iterable[int]) -> List[ShippingZone]:
    """Zones of the given vendors plus every global zone."""
    ids = sorted(set(vendor_ids))
    conds = [ShippingZone.vendor_id.is_(None)]
    if ids:
        conds.append(ShippingZone.vendor_id.in_(ids))
    return list(
        db.scalars(
            select(ShippingZone)
            .where(or_(*conds))
            .order_by(ShippingZone.vendor_id.asc(), ShippingZone.name.asc(), ShippingZone.id.asc())
        ).all()
    )


def list_order_ids_by_created_at(
    db: Session,
    *,
    time_from: datetime,
    time_to: datetime,
    limit: int = 1000,
) -> List[int]:
    return list(
        db.scalars(
            select(Order.id)
            .where(Order.created_at >= time_from, Order.created_at < time_to)
            .order_by(Order.created_at.asc(), Order.id.asc())
            .limit(int(limit))
        ).all()
    )
