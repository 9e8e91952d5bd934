# app/models/__init__.py
"""
ORM model exports.
"""

from app.models.order import Order
from app.models.product import Product
from app.models.shipping_zone import ShippingZone
from app.models.shipping_zone_rate import ShippingZoneRate
from app.models.user import User

__all__ = ["Order", "Product", "ShippingZone", "ShippingZoneRate", "User"]
