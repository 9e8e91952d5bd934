# app/api/routers/shipping_routes_preferences.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_vendor
from app.api.routers.shipping_error_codes import ShippingErrorCode
from app.api.routers.shipping_helpers import zone_problems
from app.api.routers.shipping_schemas import PreferencesIn, PreferencesOut
from app.db.deps import get_db
from app.models.user import User
from app.services.shipping_fee import VendorShippingPreferences
from app.services.vendor_preference_service import get_vendor_preferences, update_vendor_preferences


def _out(vendor: User, prefs: Optional[VendorShippingPreferences]) -> PreferencesOut:
    if prefs is None:
        return PreferencesOut(vendor_id=vendor.id, base_region=vendor.base_region, configured=False)
    return PreferencesOut(
        vendor_id=vendor.id,
        base_region=vendor.base_region,
        configured=True,
        default_base_rate=prefs.default_base_rate,
        default_out_of_region_rate=prefs.default_out_of_region_rate,
        enable_regional_rates=prefs.enable_regional_rates,
    )


def register(router: APIRouter) -> None:
    @router.get("/shipping/preferences", response_model=PreferencesOut)
    def read_preferences(
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        return _out(vendor, get_vendor_preferences(db, vendor.id))

    @router.put("/shipping/preferences", response_model=PreferencesOut)
    def write_preferences(
        payload: PreferencesIn,
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        with zone_problems(ShippingErrorCode.PREFERENCES_INVALID):
            prefs = update_vendor_preferences(db, vendor, payload.model_dump(exclude_unset=True))
        return _out(vendor, prefs)
