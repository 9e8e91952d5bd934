# app/services/shipping_fee/calc.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.product import Product
from app.models.user import User
from app.obs.metrics import shipping_fee_calculations_total, shipping_fee_lookup_errors_total

from .matchers import ZoneMatch, find_shipping_zone
from .preferences import SOURCE_NONE, SOURCE_ZONE, preference_rate
from .surcharges import apply_surcharges
from .types import (
    CartLine,
    Destination,
    ShippingFeeResult,
    ShippingInputError,
    VendorGroup,
    VendorShippingFee,
    VendorShippingPreferences,
    vendor_key,
)

log = logging.getLogger("shipfee.shipping.calc")


def _product_weight(db: Session, product_id: Optional[int]) -> Optional[float]:
    if product_id is None:
        return None
    try:
        # savepoint: a failed lookup must not abort the surrounding transaction
        with db.begin_nested():
            p = db.get(Product, product_id)
    except SQLAlchemyError as e:
        shipping_fee_lookup_errors_total.labels("product").inc()
        log.warning("product lookup failed (treated as missing): id=%s err=%s", product_id, e)
        return None
    if p is None or p.weight_kg is None:
        return None
    return float(p.weight_kg)


def _load_vendor(db: Session, vendor_id: Optional[int]) -> Optional[User]:
    if vendor_id is None:
        return None
    try:
        with db.begin_nested():
            return db.get(User, vendor_id)
    except SQLAlchemyError as e:
        shipping_fee_lookup_errors_total.labels("vendor").inc()
        log.warning("vendor lookup failed (treated as missing): id=%s err=%s", vendor_id, e)
        return None


def _group_lines(
    db: Session,
    lines: Sequence[CartLine],
    *,
    default_weight_kg: float,
    degraded: bool,
) -> Dict[Optional[int], VendorGroup]:
    groups: Dict[Optional[int], VendorGroup] = {}
    for line in lines:
        w = None if degraded else _product_weight(db, line.product_id)
        unit_weight = w if w is not None and w > 0 else default_weight_kg

        g = groups.get(line.vendor_id)
        if g is None:
            g = groups[line.vendor_id] = VendorGroup(vendor_id=line.vendor_id)
        g.lines.append(line)
        g.total_weight += unit_weight * line.quantity
        g.total_value += line.price * line.quantity
    return groups


def _price_group(
    db: Session,
    group: VendorGroup,
    dest: Destination,
    reasons: List[str],
    *,
    degraded: bool,
) -> VendorShippingFee:
    """
    Fee for one vendor group. Both calculation modes go through here:

    normal  : zone (all tiers) -> vendor preference -> 0, then surcharge rules
    degraded: vendor zone tiers only, no preference/product lookups, no surcharges;
              any failure leaves the vendor at 0
    """
    key = vendor_key(group.vendor_id)

    if degraded:
        try:
            match = find_shipping_zone(db, dest.city, dest.region, group.vendor_id, vendor_only=True)
        except Exception as e:
            log.warning("degraded zone lookup failed: vendor=%s err=%s", key, e)
            match = ZoneMatch.fallback()
        fee = match.base_rate
        source = SOURCE_ZONE if fee > 0 else SOURCE_NONE
    else:
        vendor = _load_vendor(db, group.vendor_id)
        prefs = VendorShippingPreferences.from_json(vendor.shipping_preferences) if vendor else None

        match = find_shipping_zone(db, dest.city, dest.region, group.vendor_id)
        if match.base_rate > 0:
            fee, source = match.base_rate, SOURCE_ZONE
        else:
            fee, source = preference_rate(prefs, vendor.base_region if vendor else None, dest.region)

        fee, hits = apply_surcharges(fee, match.rules, group.total_weight, group.total_value)
        for h in hits:
            unit = "kg" if h["kind"] == "weight" else ""
            reasons.append(
                f"surcharge_hit: vendor={key} {h['kind']} > {h['threshold']}{unit} ({h['additional_fee']:+.2f})"
            )

    reasons.append(f"zone_match: vendor={key} zone={match.name} tier={match.tier} source={source}")

    fee = round(max(0.0, float(fee)), 2)

    return VendorShippingFee(
        fee=fee,
        zone=match.name or "unknown",
        item_count=len(group.lines),
        cart_value=round(group.total_value, 2),
        customer_region=dest.region,
        rate_source=source,
        items=[ln.summary() for ln in group.lines],
    )


def _calculate(
    db: Session,
    lines: Sequence[CartLine],
    dest: Destination,
    *,
    degraded: bool,
) -> ShippingFeeResult:
    settings = get_settings()
    groups = _group_lines(
        db, lines, default_weight_kg=float(settings.DEFAULT_ITEM_WEIGHT_KG), degraded=degraded
    )

    reasons: List[str] = []
    fees: Dict[str, VendorShippingFee] = {}
    for vid, group in groups.items():
        fees[vendor_key(vid)] = _price_group(db, group, dest, reasons, degraded=degraded)

    total = round(sum(f.fee for f in fees.values()), 2)
    reasons.append(f"total={total:.2f} {settings.CURRENCY}")

    details: Dict[str, Any] = {
        "total_weight": round(sum(g.total_weight for g in groups.values()), 3),
        "total_cart_value": round(sum(g.total_value for g in groups.values()), 2),
        "vendor_count": len(groups),
        "currency": settings.CURRENCY,
        "is_error": False,
        "reasons": reasons,
    }
    return ShippingFeeResult(total_shipping_fee=total, admin_shipping_fees=fees, details=details)


def _parse_input(cart_items: Any, address_info: Any) -> Tuple[List[CartLine], Destination]:
    if not cart_items or not address_info:
        raise ShippingInputError("Missing required information for shipping calculation")
    if not isinstance(address_info, dict):
        raise ShippingInputError("address_info must be an object")
    if not isinstance(cart_items, (list, tuple)) or not all(isinstance(x, dict) for x in cart_items):
        raise ShippingInputError("cart_items must be a list of objects")
    return [CartLine.from_payload(x) for x in cart_items], Destination.from_address(address_info)


def calculate_shipping_fees(
    db: Session,
    cart_items: Sequence[Dict[str, Any]],
    address_info: Dict[str, Any],
) -> ShippingFeeResult:
    """
    Shipping fees for a (possibly multi-vendor) cart.

    Raises ShippingInputError only for missing cart/address. Any other failure is
    absorbed: the calculation is re-run in degraded mode and the result carries
    details["is_error"] = True plus details["error_message"].
    """
    lines, dest = _parse_input(cart_items, address_info)

    log.info(
        "shipping calc: items=%d city=%r region=%r",
        len(lines),
        dest.city or "unknown",
        dest.region or "unknown",
    )
    missing_vendor = sum(1 for ln in lines if ln.vendor_id is None)
    if missing_vendor:
        log.warning("shipping calc: %d item(s) without vendor id, bucketed as 'unknown'", missing_vendor)

    try:
        result = _calculate(db, lines, dest, degraded=False)
    except Exception as e:
        log.exception("shipping calc failed, degraded fallback: %s", e)
        if isinstance(e, SQLAlchemyError):
            db.rollback()
        result = _calculate(db, lines, dest, degraded=True)
        result.details["is_error"] = True
        result.details["error_message"] = str(e)
        shipping_fee_calculations_total.labels("degraded").inc()
        return result

    shipping_fee_calculations_total.labels("normal").inc()
    log.info(
        "shipping calc done: vendors=%d total=%.2f",
        len(result.admin_shipping_fees),
        result.total_shipping_fee,
    )
    return result
