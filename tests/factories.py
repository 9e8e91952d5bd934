# tests/factories.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.models.order import Order
from app.models.product import Product
from app.models.shipping_zone import ShippingZone
from app.models.shipping_zone_rate import ShippingZoneRate
from app.models.user import ROLE_SUPER_ADMIN, ROLE_USER, ROLE_VENDOR, User


def make_user(db: Session, *, role: str = ROLE_USER, **kw: Any) -> User:
    obj = User(
        user_name=kw.pop("user_name", f"u-{uuid.uuid4().hex[:8]}"),
        email=kw.pop("email", f"{uuid.uuid4().hex[:10]}@example.test"),
        role=role,
        **kw,
    )
    db.add(obj)
    db.commit()
    return obj


def make_vendor(
    db: Session,
    *,
    base_region: Optional[str] = None,
    prefs: Optional[Dict[str, Any]] = None,
    **kw: Any,
) -> User:
    return make_user(
        db,
        role=ROLE_VENDOR,
        shop_name=kw.pop("shop_name", "Test Shop"),
        base_region=base_region,
        shipping_preferences=prefs,
        **kw,
    )


def make_super_admin(db: Session) -> User:
    return make_user(db, role=ROLE_SUPER_ADMIN)


def make_zone(
    db: Session,
    vendor: Optional[User],
    *,
    name: str,
    region: str,
    base_rate: float,
    is_default: bool = False,
    vendor_region: Optional[str] = None,
    rates: Iterable[Tuple[str, float, float]] = (),
    updated_at: Optional[datetime] = None,
) -> ShippingZone:
    """vendor=None creates a global zone."""
    zone = ShippingZone(
        vendor_id=vendor.id if vendor is not None else None,
        name=name,
        region=region,
        base_rate=base_rate,
        is_default=is_default,
        vendor_region=vendor_region,
        additional_rates=[
            ShippingZoneRate(kind=k, threshold=t, additional_fee=f) for k, t, f in rates
        ],
    )
    if updated_at is not None:
        zone.updated_at = updated_at
    db.add(zone)
    db.commit()
    return zone


def make_product(db: Session, vendor: Optional[User], *, weight_kg: Optional[float], price: float = 10) -> Product:
    obj = Product(
        title=f"P-{uuid.uuid4().hex[:6]}",
        price=price,
        weight_kg=weight_kg,
        vendor_id=vendor.id if vendor is not None else None,
    )
    db.add(obj)
    db.commit()
    return obj


def cart_item(
    vendor: Optional[User],
    *,
    product: Optional[Product] = None,
    price: float = 20,
    quantity: int = 1,
    title: str = "Item",
) -> Dict[str, Any]:
    return {
        "product_id": product.id if product is not None else None,
        "vendor_id": vendor.id if vendor is not None else None,
        "title": title,
        "price": price,
        "quantity": quantity,
    }


ACCRA = {"address": "12 Ring Rd", "city": "Accra", "region": "Greater Accra"}


def make_order(
    db: Session,
    *,
    cart_items: Sequence[Dict[str, Any]],
    address_info: Optional[Dict[str, Any]] = None,
    shipping_fee: float = 0,
    admin_shipping_fees: Optional[Dict[str, Any]] = None,
    meta: Optional[Dict[str, Any]] = None,
    user: Optional[User] = None,
) -> Order:
    """Persist an order as-is (no fee calculation), e.g. to simulate drift."""
    items: List[Dict[str, Any]] = list(cart_items)
    subtotal = round(sum(float(i.get("price") or 0) * int(i.get("quantity") or 1) for i in items), 2)
    obj = Order(
        user_id=user.id if user is not None else None,
        cart_items=items,
        address_info=dict(address_info) if address_info is not None else None,
        subtotal=subtotal,
        total_amount=round(subtotal + shipping_fee, 2),
        shipping_fee=shipping_fee,
        admin_shipping_fees=admin_shipping_fees or {},
        meta=meta or {},
    )
    db.add(obj)
    db.commit()
    return obj
