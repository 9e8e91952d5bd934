# app/services/order_shipping_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.models.order import Order
from app.services.shipping_fee import ShippingFeeResult, calculate_shipping_fees
from app.services.shipping_fee.types import CartLine, vendor_key

log = logging.getLogger("shipfee.orders")

METHOD_CHECKOUT = "checkout"
METHOD_DIAGNOSTIC_FIX = "diagnostic-fix"


def _vendor_name(raw_items: Sequence[Dict[str, Any]]) -> str:
    for it in raw_items:
        name = it.get("vendor_name") or it.get("admin_name")
        if name:
            return str(name)
    return "Vendor"


def build_shipping_details(
    result: ShippingFeeResult,
    cart_items: Sequence[Dict[str, Any]],
    *,
    calculation_method: str,
) -> Dict[str, Any]:
    """
    Display projection stored under order.meta["shipping_details"]:

      {total_shipping_fee, calculation_method,
       vendor_shipping: {key: {vendor_name, vendor_id, fee, items, zone, item_count,
                               cart_value, customer_region, rate_source}}}
    """
    by_vendor: Dict[str, List[Dict[str, Any]]] = {}
    for raw in cart_items:
        if isinstance(raw, dict):
            by_vendor.setdefault(vendor_key(CartLine.from_payload(raw).vendor_id), []).append(raw)

    vendor_shipping: Dict[str, Dict[str, Any]] = {}
    for key, fee in result.admin_shipping_fees.items():
        raw_items = by_vendor.get(key, [])
        entry: Dict[str, Any] = {
            "vendor_name": _vendor_name(raw_items),
            "vendor_id": key,
            "fee": fee.fee,
            "items": [CartLine.from_payload(it).summary() for it in raw_items],
        }
        for k, v in fee.to_dict().items():
            if k not in ("fee", "items"):
                entry[k] = v
        vendor_shipping[key] = entry

    return {
        "total_shipping_fee": result.total_shipping_fee,
        "calculation_method": calculation_method,
        "vendor_shipping": vendor_shipping,
    }


def _subtotal(cart_items: Sequence[Dict[str, Any]]) -> float:
    lines = [CartLine.from_payload(it) for it in cart_items if isinstance(it, dict)]
    return round(sum(ln.price * ln.quantity for ln in lines), 2)


def create_order_with_shipping(
    db: Session,
    *,
    user_id: Optional[int],
    cart_items: Sequence[Dict[str, Any]],
    address_info: Dict[str, Any],
    status: str = "processing",
) -> Order:
    """
    Checkout persistence: the fee total, the per-vendor breakdown and the
    meta projection are written together from one calculation.

    Raises ShippingInputError on missing cart/address; commits on success.
    """
    result = calculate_shipping_fees(db, cart_items, address_info)
    if result.is_error:
        log.warning(
            "order created from degraded shipping calculation: user=%s err=%s",
            user_id,
            result.details.get("error_message"),
        )

    subtotal = _subtotal(cart_items)
    total = round(subtotal + result.total_shipping_fee, 2)

    order = Order(
        user_id=user_id,
        status=status,
        cart_items=list(cart_items),
        address_info=dict(address_info),
        subtotal=subtotal,
        total_amount=total,
        shipping_fee=result.total_shipping_fee,
        admin_shipping_fees={k: v.to_dict() for k, v in result.admin_shipping_fees.items()},
        meta={
            "shipping_details": build_shipping_details(
                result, cart_items, calculation_method=METHOD_CHECKOUT
            ),
            "order_summary": {
                "subtotal": subtotal,
                "shipping": result.total_shipping_fee,
                "total": total,
            },
        },
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    log.info(
        "order created: id=%s user=%s subtotal=%.2f shipping=%.2f total=%.2f",
        order.id,
        user_id,
        subtotal,
        result.total_shipping_fee,
        total,
    )
    return order
