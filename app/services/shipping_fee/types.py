# app/services/shipping_fee/types.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

UNKNOWN_VENDOR_KEY = "unknown"

# placeholders that older carts carry instead of a vendor id
_VENDOR_PLACEHOLDERS = {"", "unknown", "shop seller", "null", "none", "undefined"}


class ShippingInputError(ValueError):
    """Cart items or address missing: the only error the calculator raises."""


@dataclass(frozen=True)
class Destination:
    city: str = ""
    region: str = ""

    @classmethod
    def from_address(cls, address_info: Dict[str, Any]) -> "Destination":
        return cls(city=_norm(address_info.get("city")), region=_norm(address_info.get("region")))


@dataclass(frozen=True)
class CartLine:
    product_id: Optional[int]
    vendor_id: Optional[int]
    quantity: int
    price: float
    title: str

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "CartLine":
        vendor_raw = raw.get("vendor_id", raw.get("admin_id"))
        return cls(
            product_id=parse_id(raw.get("product_id")),
            vendor_id=parse_id(vendor_raw),
            quantity=_to_quantity(raw.get("quantity")),
            price=_to_float(raw.get("price")) or 0.0,
            title=str(raw.get("title") or "Unknown Product"),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id if self.product_id is not None else UNKNOWN_VENDOR_KEY,
            "title": self.title,
            "quantity": self.quantity,
        }


@dataclass
class VendorGroup:
    vendor_id: Optional[int]
    lines: List[CartLine] = field(default_factory=list)
    total_weight: float = 0.0
    total_value: float = 0.0


@dataclass(frozen=True)
class VendorShippingPreferences:
    default_base_rate: Optional[float] = None
    default_out_of_region_rate: Optional[float] = None
    enable_regional_rates: bool = True

    @classmethod
    def from_json(cls, raw: Optional[Dict[str, Any]]) -> Optional["VendorShippingPreferences"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            default_base_rate=_to_float(raw.get("default_base_rate")),
            default_out_of_region_rate=_to_float(raw.get("default_out_of_region_rate")),
            # absent flag means enabled
            enable_regional_rates=raw.get("enable_regional_rates") is not False,
        )

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class VendorShippingFee:
    fee: float
    zone: str
    item_count: int
    cart_value: float
    customer_region: str
    rate_source: str
    items: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ShippingFeeResult:
    total_shipping_fee: float
    admin_shipping_fees: Dict[str, VendorShippingFee]
    details: Dict[str, Any]

    @property
    def is_error(self) -> bool:
        return bool(self.details.get("is_error"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_shipping_fee": self.total_shipping_fee,
            "admin_shipping_fees": {k: v.to_dict() for k, v in self.admin_shipping_fees.items()},
            "details": dict(self.details),
        }


def vendor_key(vendor_id: Optional[int]) -> str:
    return UNKNOWN_VENDOR_KEY if vendor_id is None else str(vendor_id)


def parse_id(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v > 0 else None
    s = str(v).strip()
    if s.lower() in _VENDOR_PLACEHOLDERS:
        return None
    try:
        n = int(s)
    except ValueError:
        return None
    return n if n > 0 else None


def _norm(v: Any) -> str:
    return str(v or "").strip().lower()


def _to_float(v: Any) -> Optional[float]:
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _to_quantity(v: Any) -> int:
    """Whole units, half rounds up; missing or below one counts as 1."""
    q = _to_float(v)
    if q is None or not math.isfinite(q):
        return 1
    n = int(math.floor(q + 0.5))
    return n if n >= 1 else 1
