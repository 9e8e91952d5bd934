# app/services/shipping_fee/__init__.py
from __future__ import annotations

from .calc import calculate_shipping_fees
from .delivery import calculate_estimated_delivery
from .matchers import ZoneMatch, find_shipping_zone, normalize_region_name
from .types import (
    UNKNOWN_VENDOR_KEY,
    Destination,
    ShippingFeeResult,
    ShippingInputError,
    VendorShippingFee,
    VendorShippingPreferences,
)

__all__ = [
    "UNKNOWN_VENDOR_KEY",
    "Destination",
    "ShippingFeeResult",
    "ShippingInputError",
    "VendorShippingFee",
    "VendorShippingPreferences",
    "ZoneMatch",
    "calculate_estimated_delivery",
    "calculate_shipping_fees",
    "find_shipping_zone",
    "normalize_region_name",
]
