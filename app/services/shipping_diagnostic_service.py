# app/services/shipping_diagnostic_service.py
from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.order import Order
from app.models.user import User
from app.obs.metrics import shipping_fee_discrepancies_total, shipping_fee_fixes_total
from app.services.order_shipping_service import METHOD_DIAGNOSTIC_FIX, build_shipping_details
from app.services.shipping_diagnostic_apply import apply_shipping_fix
from app.services.shipping_diagnostic_errors import OrderNotFound, ShippingFixConflict
from app.services.shipping_diagnostic_queries import list_order_ids_by_created_at, load_relevant_zones
from app.services.shipping_diagnostic_types import ShippingDiagnosticReport, ShippingFixResult, VendorFact
from app.services.shipping_fee import ShippingFeeResult, ShippingInputError, calculate_shipping_fees
from app.services.shipping_fee.types import CartLine

__all__ = [
    "ShippingDiagnosticReport",
    "ShippingFixResult",
    "check_order_schema",
    "diagnose_order_shipping_fees",
    "diagnose_orders_by_created_at",
    "fix_order_shipping_fees",
    "fix_orders_by_created_at",
]

log = logging.getLogger("shipfee.shipping.diagnostic")


def _f(v: Any) -> float:
    try:
        return float(v or 0)
    except (TypeError, ValueError):
        return 0.0


def _stored_breakdown_total(admin_shipping_fees: Any) -> float:
    if not isinstance(admin_shipping_fees, dict):
        return 0.0
    total = 0.0
    for v in admin_shipping_fees.values():
        total += _f(v.get("fee")) if isinstance(v, dict) else _f(v)
    return round(total, 2)


def _diagnose(db: Session, order: Order) -> tuple[ShippingDiagnosticReport, Optional[ShippingFeeResult]]:
    tol = float(get_settings().SHIPPING_FEE_TOLERANCE)
    issues: List[str] = []
    recs: List[str] = []

    def issue(msg: str, rec: Optional[str] = None) -> None:
        issues.append(msg)
        if rec:
            recs.append(rec)

    stored_fee = round(_f(order.shipping_fee), 2)
    stored_breakdown = order.admin_shipping_fees or {}

    # cart
    raw_items = order.cart_items if isinstance(order.cart_items, list) else []
    lines = [CartLine.from_payload(it) for it in raw_items if isinstance(it, dict)]
    if not lines:
        issue("No cart items found in order", "Check if the order was created with valid cart items")

    no_vendor = sum(1 for ln in lines if ln.vendor_id is None)
    if no_vendor:
        issue(
            f"{no_vendor} items have missing or unknown vendor id",
            "Ensure all products have a valid vendor assigned",
        )

    # address
    addr = order.address_info if isinstance(order.address_info, dict) else None
    if addr is None:
        issue("No address information found", "Ensure the order has valid shipping address information")
    elif not addr.get("city") and not addr.get("region"):
        issue("Missing city and region in address", "Ensure the shipping address has city and region information")

    # vendors + zones
    vendor_ids = sorted({ln.vendor_id for ln in lines if ln.vendor_id is not None})
    zones = load_relevant_zones(db, vendor_ids)
    if not zones:
        issue("No shipping zones defined in the system", "Set up shipping zones for proper shipping fee calculation")

    vendors: List[VendorFact] = []
    for vid in vendor_ids:
        v = db.get(User, vid)
        zone_count = sum(1 for z in zones if z.vendor_id == vid)
        if v is None:
            vendors.append(VendorFact(vendor_id=vid, found=False, zone_count=zone_count))
            issue(f"Vendor with ID {vid} not found", "Verify that all vendor ids reference valid vendors")
            continue

        fact = VendorFact(
            vendor_id=vid,
            found=True,
            base_region=v.base_region,
            has_shipping_preferences=bool(v.shipping_preferences),
            shipping_preferences=v.shipping_preferences or None,
            zone_count=zone_count,
        )
        vendors.append(fact)
        if not v.base_region:
            issue(f"Vendor {vid} has no base region set", f"Ask vendor {vid} to set their base region in their profile")
        if not v.shipping_preferences:
            issue(
                f"Vendor {vid} has no shipping preferences set",
                f"Ask vendor {vid} to configure their shipping preferences",
            )
        if zone_count == 0:
            issue(f"Vendor {vid} has no custom shipping zones", f"Set up shipping zones for vendor {vid}")

    if abs(_stored_breakdown_total(stored_breakdown) - stored_fee) > tol:
        issue(
            f"Stored per-vendor fees sum to {_stored_breakdown_total(stored_breakdown):.2f}, "
            f"stored total is {stored_fee:.2f}",
            "Re-run the shipping fix to rebuild the breakdown",
        )

    # fresh calculation
    result: Optional[ShippingFeeResult] = None
    if lines and addr:
        try:
            result = calculate_shipping_fees(db, raw_items, addr)
        except ShippingInputError as e:
            issue(f"Cannot simulate shipping fee calculation: {e}")

    calculated_fee: Optional[float] = None
    has_discrepancy = False
    is_degraded = False
    if result is not None:
        calculated_fee = result.total_shipping_fee
        is_degraded = result.is_error
        if is_degraded:
            issue(
                f"Shipping calculation ran in degraded mode: {result.details.get('error_message')}",
                "Investigate the logged calculation error before trusting the recomputed fee",
            )

        if abs(stored_fee - calculated_fee) > tol:
            has_discrepancy = True
            shipping_fee_discrepancies_total.inc()
            issue(
                f"Order shipping fee ({stored_fee:.2f}) doesn't match calculated fee ({calculated_fee:.2f})",
                "Update the order with the correct shipping fee",
            )

        zero = [k for k, v in result.admin_shipping_fees.items() if v.fee == 0]
        if zero:
            issue(
                f"{len(zero)} vendors have zero shipping fees",
                "Check vendor shipping settings for vendors with zero fees",
            )

    report = ShippingDiagnosticReport(
        order_id=order.id,
        version=order.version,
        order={
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status,
            "shipping_fee": stored_fee,
            "admin_shipping_fees": stored_breakdown,
            "metadata": order.meta or {},
        },
        cart_items=[
            {
                "product_id": ln.product_id,
                "vendor_id": ln.vendor_id,
                "title": ln.title,
                "price": ln.price,
                "quantity": ln.quantity,
            }
            for ln in lines
        ],
        address_info=addr,
        vendors=vendors,
        shipping_zones=[
            {
                "id": z.id,
                "name": z.name,
                "region": z.region,
                "base_rate": float(z.base_rate or 0),
                "is_default": bool(z.is_default),
                "vendor_id": z.vendor_id,
            }
            for z in zones
        ],
        calculation=result.to_dict() if result is not None else None,
        stored_fee=stored_fee,
        calculated_fee=calculated_fee,
        has_discrepancy=has_discrepancy,
        is_degraded=is_degraded,
        issues=issues,
        recommendations=recs,
    )
    return report, result


def _load_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise OrderNotFound(f"order not found: id={order_id}")
    return order


def diagnose_order_shipping_fees(db: Session, order_id: int) -> ShippingDiagnosticReport:
    """
    Re-run the fee calculation against the stored cart/address and compare with the
    persisted total (absolute tolerance SHIPPING_FEE_TOLERANCE). Read-only.
    """
    order = _load_order(db, order_id)
    report, _ = _diagnose(db, order)
    log.info(
        "shipping diagnose: order=%s stored=%.2f calculated=%s discrepancy=%s issues=%d",
        order_id,
        report.stored_fee,
        "n/a" if report.calculated_fee is None else f"{report.calculated_fee:.2f}",
        report.has_discrepancy,
        len(report.issues),
    )
    return report


def fix_order_shipping_fees(db: Session, order_id: int) -> ShippingFixResult:
    """
    Overwrite shipping_fee, admin_shipping_fees and meta.shipping_details with a fresh
    calculation. Refused (success=False) when the calculation is degraded or not positive.

    The write is conditional on the version read during diagnosis; a concurrent
    change raises ShippingFixConflict. Does not commit.
    """
    order = _load_order(db, order_id)
    report, result = _diagnose(db, order)
    old_fee = report.stored_fee

    if result is None or result.is_error or result.total_shipping_fee <= 0:
        shipping_fee_fixes_total.labels("skipped").inc()
        log.warning(
            "shipping fix refused: order=%s calculated=%s degraded=%s",
            order_id,
            report.calculated_fee,
            report.is_degraded,
        )
        return ShippingFixResult(
            order_id=order_id,
            success=False,
            message="Cannot fix shipping fees: No valid calculation results available",
            old_shipping_fee=old_fee,
            diagnostic=report,
        )

    new_fee = result.total_shipping_fee
    breakdown = {k: v.to_dict() for k, v in result.admin_shipping_fees.items()}

    meta: Dict[str, Any] = copy.deepcopy(order.meta or {})
    meta["shipping_details"] = build_shipping_details(
        result, order.cart_items or [], calculation_method=METHOD_DIAGNOSTIC_FIX
    )
    summary = meta.get("order_summary")
    if isinstance(summary, dict):
        summary["shipping"] = new_fee
        summary["total"] = round(_f(summary.get("subtotal")) + new_fee, 2)

    try:
        version = apply_shipping_fix(
            db,
            order_id=order_id,
            expected_version=report.version,
            shipping_fee=new_fee,
            admin_shipping_fees=breakdown,
            meta=meta,
        )
    except ShippingFixConflict:
        shipping_fee_fixes_total.labels("conflict").inc()
        log.warning("shipping fix conflict: order=%s expected_version=%s", order_id, report.version)
        raise
    db.expire(order)

    shipping_fee_fixes_total.labels("fixed").inc()
    log.info("shipping fix applied: order=%s %.2f -> %.2f version=%s", order_id, old_fee, new_fee, version)
    return ShippingFixResult(
        order_id=order_id,
        success=True,
        message=f"Shipping fee updated from {old_fee:.2f} to {new_fee:.2f}",
        old_shipping_fee=old_fee,
        new_shipping_fee=new_fee,
        admin_shipping_fees=breakdown,
        version=version,
    )


def diagnose_orders_by_created_at(
    db: Session,
    time_from: datetime,
    time_to: datetime,
    limit: int = 1000,
) -> List[ShippingDiagnosticReport]:
    order_ids = list_order_ids_by_created_at(db, time_from=time_from, time_to=time_to, limit=limit)
    return [diagnose_order_shipping_fees(db, oid) for oid in order_ids]


def fix_orders_by_created_at(
    db: Session,
    time_from: datetime,
    time_to: datetime,
    limit: int = 1000,
) -> List[ShippingFixResult]:
    """
    Fix every order in the window that shows a discrepancy. A version conflict on
    one order is reported in its result and does not stop the batch.
    """
    results: List[ShippingFixResult] = []
    for oid in list_order_ids_by_created_at(db, time_from=time_from, time_to=time_to, limit=limit):
        report = diagnose_order_shipping_fees(db, oid)
        if not report.has_discrepancy:
            continue
        try:
            results.append(fix_order_shipping_fees(db, oid))
        except ShippingFixConflict as e:
            results.append(
                ShippingFixResult(order_id=oid, success=False, message=str(e), old_shipping_fee=report.stored_fee)
            )
    return results


def check_order_schema(db: Session) -> Dict[str, Any]:
    """Presence and type of the shipping columns on the live orders table."""
    cols = {c["name"]: c for c in inspect(db.get_bind()).get_columns("orders")}

    def _type(name: str) -> Optional[str]:
        c = cols.get(name)
        return str(c["type"]) if c else None

    return {
        "success": True,
        "schema": {
            "has_shipping_fee": "shipping_fee" in cols,
            "has_admin_shipping_fees": "admin_shipping_fees" in cols,
            "has_metadata": "metadata" in cols,
            "has_version": "version" in cols,
        },
        "types": {
            "shipping_fee": _type("shipping_fee"),
            "admin_shipping_fees": _type("admin_shipping_fees"),
            "metadata": _type("metadata"),
            "version": _type("version"),
        },
    }
