# app/services/shipping_diagnostic_apply.py
from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.order import Order
from app.services.shipping_diagnostic_errors import ShippingFixConflict


def apply_shipping_fix(
    db: Session,
    *,
    order_id: int,
    expected_version: int,
    shipping_fee: float,
    admin_shipping_fees: Dict[str, Any],
    meta: Dict[str, Any],
) -> int:
    """
    Write the recomputed shipping fields in one conditional UPDATE:

      UPDATE orders SET ..., version = :v + 1 WHERE id = :id AND version = :v

    Zero rows -> ShippingFixConflict. Does not commit; the caller owns the transaction.
    Returns the new version.
    """
    new_version = int(expected_version) + 1
    res = db.execute(
        update(Order)
        .where(Order.id == order_id, Order.version == int(expected_version))
        .values(
            {
                Order.shipping_fee: shipping_fee,
                Order.admin_shipping_fees: admin_shipping_fees,
                Order.meta: meta,
                Order.version: new_version,
                Order.updated_at: func.now(),
            }
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise ShippingFixConflict(order_id, int(expected_version))
    return new_version
