# app/api/routers/shipping_schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

IdLike = Union[int, str]


# ---------------------------
# calculate
# ---------------------------


class CartItemIn(BaseModel):
    # vendor_name / image / ... ride along untouched
    model_config = ConfigDict(extra="allow")

    product_id: Optional[IdLike] = None
    vendor_id: Optional[IdLike] = None
    # legacy carts carry the vendor as admin_id
    admin_id: Optional[IdLike] = None
    title: Optional[str] = None
    price: float = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=0)


class AddressInfoIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    phone: Optional[str] = None


class ShippingCalcIn(BaseModel):
    cart_items: List[CartItemIn] = Field(default_factory=list)
    address_info: Optional[AddressInfoIn] = None


class VendorShippingFeeOut(BaseModel):
    fee: float
    zone: str
    item_count: int
    cart_value: float
    customer_region: str
    rate_source: str
    items: List[Dict[str, Any]] = Field(default_factory=list)


class EstimatedDeliveryOut(BaseModel):
    min_delivery_date: str
    max_delivery_date: str
    display_text: str


class ShippingCalcOut(BaseModel):
    total_shipping_fee: float
    admin_shipping_fees: Dict[str, VendorShippingFeeOut]
    details: Dict[str, Any]
    estimated_delivery: EstimatedDeliveryOut


# ---------------------------
# zones
# ---------------------------


class ZoneRateIn(BaseModel):
    kind: Literal["weight", "price"]
    threshold: float
    # negative = discount
    additional_fee: float


class ZoneRateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    threshold: float
    additional_fee: float


class ZoneCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    region: str = Field(..., min_length=1, max_length=128)
    base_rate: float = Field(..., ge=0)
    is_default: bool = False
    vendor_region: Optional[str] = Field(default=None, max_length=128)
    same_region_cap_fee: Optional[float] = Field(default=None, ge=0)
    additional_rates: List[ZoneRateIn] = Field(default_factory=list)


class ZoneUpdateIn(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    region: Optional[str] = Field(default=None, min_length=1, max_length=128)
    base_rate: Optional[float] = Field(default=None, ge=0)
    is_default: Optional[bool] = None
    vendor_region: Optional[str] = Field(default=None, max_length=128)
    same_region_cap_fee: Optional[float] = Field(default=None, ge=0)
    additional_rates: Optional[List[ZoneRateIn]] = None
    update_all_zones: bool = False


class ZoneOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vendor_id: Optional[int] = None
    name: str
    region: str
    base_rate: float
    is_default: bool
    vendor_region: Optional[str] = None
    same_region_cap_fee: Optional[float] = None
    additional_rates: List[ZoneRateOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ZoneListOut(BaseModel):
    ok: bool = True
    count: int
    data: List[ZoneOut]


class ZoneSyncIn(BaseModel):
    base_region: Optional[str] = Field(default=None, max_length=128)


class ZoneSyncItemOut(BaseModel):
    id: int
    name: str
    old_region: Optional[str] = None
    new_region: str
    changed: bool


class ZoneSyncOut(BaseModel):
    ok: bool = True
    message: str
    results: List[ZoneSyncItemOut]


# ---------------------------
# vendor preferences
# ---------------------------


class PreferencesIn(BaseModel):
    default_base_rate: Optional[float] = Field(default=None, ge=0)
    default_out_of_region_rate: Optional[float] = Field(default=None, ge=0)
    enable_regional_rates: Optional[bool] = None


class PreferencesOut(BaseModel):
    vendor_id: int
    base_region: Optional[str] = None
    configured: bool
    default_base_rate: Optional[float] = None
    default_out_of_region_rate: Optional[float] = None
    enable_regional_rates: bool = True

