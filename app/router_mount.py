# app/router_mount.py
from __future__ import annotations

from fastapi import FastAPI


def mount_routers(app: FastAPI) -> None:
    from app.api.routers.shipping import router as shipping_router
    from app.metrics import router as prom_metrics_router

    app.include_router(shipping_router)
    app.include_router(prom_metrics_router)
