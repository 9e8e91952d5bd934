# app/api/routers/shipping_error_codes.py
from __future__ import annotations


class ShippingErrorCode:
    CALC_MISSING_INPUT = "SHIPPING_CALC_MISSING_INPUT"

    ZONE_NOT_FOUND = "SHIPPING_ZONE_NOT_FOUND"
    ZONE_FORBIDDEN = "SHIPPING_ZONE_FORBIDDEN"
    ZONE_DEFAULT_DELETE = "SHIPPING_ZONE_DEFAULT_DELETE"
    ZONE_INVALID = "SHIPPING_ZONE_INVALID"

    PREFERENCES_INVALID = "SHIPPING_PREFERENCES_INVALID"

    ORDER_NOT_FOUND = "SHIPPING_ORDER_NOT_FOUND"
    FIX_CONFLICT = "SHIPPING_FIX_CONFLICT"
    FIX_REFUSED = "SHIPPING_FIX_REFUSED"
