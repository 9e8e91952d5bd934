# app/api/routers/shipping.py
from __future__ import annotations

from fastapi import APIRouter

from app.api.routers import shipping_routes_calc
from app.api.routers import shipping_routes_diagnostic
from app.api.routers import shipping_routes_preferences
from app.api.routers import shipping_routes_zones
from app.api.routers.shipping_schemas import (
    ShippingCalcIn,
    ShippingCalcOut,
    ZoneCreateIn,
    ZoneOut,
    ZoneUpdateIn,
)

router = APIRouter(tags=["shipping"])


def _register_all_routes() -> None:
    shipping_routes_calc.register(router)
    shipping_routes_zones.register(router)
    shipping_routes_preferences.register(router)
    shipping_routes_diagnostic.register(router)


_register_all_routes()

__all__ = [
    "router",
    "ShippingCalcIn",
    "ShippingCalcOut",
    "ZoneCreateIn",
    "ZoneOut",
    "ZoneUpdateIn",
]
