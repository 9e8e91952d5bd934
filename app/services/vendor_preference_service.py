# app/services/vendor_preference_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.shipping_fee.types import VendorShippingPreferences
from app.services.shipping_zone_errors import ZoneBadInput

log = logging.getLogger("shipfee.shipping.preferences")

_RATE_KEYS = ("default_base_rate", "default_out_of_region_rate")


def get_vendor_preferences(db: Session, vendor_id: Optional[int]) -> Optional[VendorShippingPreferences]:
    """None when the vendor is unknown or has never configured preferences."""
    if vendor_id is None:
        return None
    vendor = db.get(User, vendor_id)
    if vendor is None:
        return None
    return VendorShippingPreferences.from_json(vendor.shipping_preferences)


def update_vendor_preferences(
    db: Session,
    vendor: User,
    payload: Mapping[str, Any],
) -> VendorShippingPreferences:
    """Merge payload into the stored preferences; a rate key set to null clears it."""
    details: List[Dict[str, Any]] = []
    current: Dict[str, Any] = dict(vendor.shipping_preferences or {})

    for key in _RATE_KEYS:
        if key not in payload:
            continue
        raw = payload[key]
        if raw is None:
            current[key] = None
            continue
        try:
            n = float(raw)
        except (TypeError, ValueError):
            details.append({"type": "validation", "path": key, "reason": f"{key} must be a number"})
            continue
        if n < 0:
            details.append({"type": "validation", "path": key, "reason": f"{key} must be >= 0"})
            continue
        current[key] = n

    if "enable_regional_rates" in payload and payload["enable_regional_rates"] is not None:
        current["enable_regional_rates"] = bool(payload["enable_regional_rates"])

    if details:
        raise ZoneBadInput(details=details)

    prefs = VendorShippingPreferences.from_json(current) or VendorShippingPreferences()
    # reassign: in-place JSON mutation is not tracked
    vendor.shipping_preferences = prefs.to_json()
    db.commit()
    db.refresh(vendor)

    log.info(
        "vendor shipping preferences updated: vendor=%s base=%s out_of_region=%s regional=%s",
        vendor.id,
        prefs.default_base_rate,
        prefs.default_out_of_region_rate,
        prefs.enable_regional_rates,
    )
    return prefs
