# app/api/routers/shipping_routes_zones.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.deps import require_vendor, require_vendor_or_super_admin
from app.api.routers.shipping_helpers import zone_problems
from app.api.routers.shipping_schemas import (
    ZoneCreateIn,
    ZoneListOut,
    ZoneOut,
    ZoneSyncIn,
    ZoneSyncOut,
    ZoneUpdateIn,
)
from app.db.deps import get_db
from app.models.user import User
from app.services import shipping_zone_service as zones


def register(router: APIRouter) -> None:
    @router.get("/shipping/zones", response_model=ZoneListOut)
    def list_shipping_zones(
        db: Session = Depends(get_db),
        user: User = Depends(require_vendor_or_super_admin),
    ):
        rows = zones.list_zones(db, user)
        return ZoneListOut(count=len(rows), data=[ZoneOut.model_validate(z) for z in rows])

    @router.post(
        "/shipping/zones",
        response_model=ZoneOut,
        status_code=status.HTTP_201_CREATED,
    )
    def create_shipping_zone(
        payload: ZoneCreateIn,
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        with zone_problems():
            zone = zones.create_zone(db, vendor, payload.model_dump())
        return ZoneOut.model_validate(zone)

    # registered before /{zone_id} so the literal path wins
    @router.post("/shipping/zones/sync-vendor-region", response_model=ZoneSyncOut)
    def sync_vendor_region(
        payload: ZoneSyncIn,
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        with zone_problems():
            results = zones.sync_vendor_zone_regions(db, vendor, payload.base_region)
        changed = sum(1 for r in results if r["changed"])
        return ZoneSyncOut(
            message=f"Updated {changed} of {len(results)} shipping zones",
            results=results,
        )

    @router.get("/shipping/zones/{zone_id}", response_model=ZoneOut)
    def get_shipping_zone(
        zone_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
        user: User = Depends(require_vendor_or_super_admin),
    ):
        with zone_problems():
            zone = zones.get_zone(db, zone_id, user)
        return ZoneOut.model_validate(zone)

    @router.put("/shipping/zones/{zone_id}", response_model=ZoneOut)
    def update_shipping_zone(
        payload: ZoneUpdateIn,
        zone_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        with zone_problems():
            zone = zones.update_zone(db, vendor, zone_id, payload.model_dump(exclude_unset=True))
        return ZoneOut.model_validate(zone)

    @router.delete("/shipping/zones/{zone_id}", status_code=status.HTTP_200_OK)
    def delete_shipping_zone(
        zone_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
        vendor: User = Depends(require_vendor),
    ):
        with zone_problems():
            zones.delete_zone(db, vendor, zone_id)
        return {"ok": True, "message": "Shipping zone deleted successfully"}
