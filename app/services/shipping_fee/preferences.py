# app/services/shipping_fee/preferences.py
from __future__ import annotations

from typing import Optional, Tuple

from .matchers import normalize_region_name
from .types import VendorShippingPreferences

SOURCE_ZONE = "zone"
SOURCE_VENDOR_DEFAULT = "vendor_default"
SOURCE_VENDOR_OUT_OF_REGION = "vendor_out_of_region"
SOURCE_NONE = "none"


def preference_rate(
    prefs: Optional[VendorShippingPreferences],
    vendor_region: Optional[str],
    customer_region: Optional[str],
) -> Tuple[float, str]:
    """
    Fallback rate when no zone with a positive base rate matched.

    - regional rates enabled + vendor region known + regions differ + out-of-region
      rate configured -> out-of-region rate
    - otherwise the vendor default base rate
    - no preferences (or nothing configured) -> 0, never a guessed fee
    """
    if prefs is None:
        return 0.0, SOURCE_NONE

    vr = normalize_region_name(vendor_region)
    cr = normalize_region_name(customer_region)

    if (
        prefs.enable_regional_rates
        and vr
        and cr
        and vr != cr
        and prefs.default_out_of_region_rate is not None
    ):
        return max(0.0, float(prefs.default_out_of_region_rate)), SOURCE_VENDOR_OUT_OF_REGION

    if prefs.default_base_rate is not None:
        return max(0.0, float(prefs.default_base_rate)), SOURCE_VENDOR_DEFAULT

    return 0.0, SOURCE_NONE
