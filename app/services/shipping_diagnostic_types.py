# app/services/shipping_diagnostic_types.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class VendorFact:
    vendor_id: int
    found: bool
    base_region: Optional[str] = None
    has_shipping_preferences: bool = False
    shipping_preferences: Optional[Dict[str, Any]] = None
    zone_count: int = 0


@dataclass
class ShippingDiagnosticReport:
    order_id: int
    version: int
    order: Dict[str, Any]
    cart_items: List[Dict[str, Any]]
    address_info: Optional[Dict[str, Any]]
    vendors: List[VendorFact]
    shipping_zones: List[Dict[str, Any]]
    calculation: Optional[Dict[str, Any]]
    stored_fee: float
    calculated_fee: Optional[float]
    has_discrepancy: bool
    is_degraded: bool
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ShippingFixResult:
    order_id: int
    success: bool
    message: str
    old_shipping_fee: float
    new_shipping_fee: Optional[float] = None
    admin_shipping_fees: Optional[Dict[str, Any]] = None
    version: Optional[int] = None
    # set when the fix was refused
    diagnostic: Optional[ShippingDiagnosticReport] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
