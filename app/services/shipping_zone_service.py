# app/services/shipping_zone_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.shipping_zone import ShippingZone
from app.models.shipping_zone_rate import RATE_KIND_PRICE, RATE_KIND_WEIGHT, ShippingZoneRate
from app.models.user import User
from app.services.shipping_zone_errors import (
    DefaultZoneDeleteError,
    ZoneBadInput,
    ZoneForbidden,
    ZoneNotFound,
)

log = logging.getLogger("shipfee.shipping.zone_service")

_RATE_KINDS = (RATE_KIND_WEIGHT, RATE_KIND_PRICE)


def _text(v: Any) -> str:
    return str(v or "").strip()


def _money(payload: Mapping[str, Any], key: str, details: List[Dict[str, Any]]) -> Optional[float]:
    raw = payload.get(key)
    if raw is None:
        return None
    try:
        n = float(raw)
    except (TypeError, ValueError):
        details.append({"type": "validation", "path": key, "reason": f"{key} must be a number"})
        return None
    if n < 0:
        details.append({"type": "validation", "path": key, "reason": f"{key} must be >= 0"})
        return None
    return n


def _parse_rates(raw: Any, details: List[Dict[str, Any]]) -> List[ShippingZoneRate]:
    if raw is None:
        return []
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        details.append({"type": "validation", "path": "additional_rates", "reason": "must be a list"})
        return []

    out: List[ShippingZoneRate] = []
    for i, r in enumerate(raw):
        path = f"additional_rates[{i}]"
        if not isinstance(r, Mapping):
            details.append({"type": "validation", "path": path, "reason": "must be an object"})
            continue
        kind = _text(r.get("kind") or r.get("type")).lower()
        if kind not in _RATE_KINDS:
            details.append({"type": "validation", "path": f"{path}.kind", "reason": "kind must be weight or price"})
            continue
        try:
            threshold = float(r.get("threshold"))
            fee = float(r.get("additional_fee"))
        except (TypeError, ValueError):
            details.append(
                {"type": "validation", "path": path, "reason": "threshold and additional_fee must be numbers"}
            )
            continue
        out.append(ShippingZoneRate(kind=kind, threshold=threshold, additional_fee=fee))
    return out


def _unset_other_defaults(db: Session, vendor_id: Optional[int], keep_id: Optional[int]) -> None:
    owner = ShippingZone.vendor_id.is_(None) if vendor_id is None else ShippingZone.vendor_id == vendor_id
    stmt = update(ShippingZone).where(owner, ShippingZone.is_default.is_(True))
    if keep_id is not None:
        stmt = stmt.where(ShippingZone.id != keep_id)
    db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))


def _owned_zone(db: Session, vendor: User, zone_id: int) -> ShippingZone:
    zone = db.get(ShippingZone, zone_id)
    if zone is None:
        raise ZoneNotFound(f"shipping zone not found: id={zone_id}")
    if zone.vendor_id != vendor.id:
        raise ZoneForbidden(f"shipping zone {zone_id} is not owned by vendor {vendor.id}")
    return zone


def list_zones(db: Session, user: User) -> List[ShippingZone]:
    """Vendors see their own zones; super admins see every zone (global ones included)."""
    stmt = select(ShippingZone).order_by(ShippingZone.name.asc(), ShippingZone.id.asc())
    if not user.is_super_admin:
        stmt = stmt.where(ShippingZone.vendor_id == user.id)
    return list(db.scalars(stmt).all())


def get_zone(db: Session, zone_id: int, user: Optional[User] = None) -> ShippingZone:
    zone = db.get(ShippingZone, zone_id)
    if zone is None:
        raise ZoneNotFound(f"shipping zone not found: id={zone_id}")
    if user is not None and not user.is_super_admin:
        if zone.vendor_id is not None and zone.vendor_id != user.id:
            raise ZoneForbidden(f"shipping zone {zone_id} is not visible to user {user.id}")
    return zone


def create_zone(db: Session, vendor: User, payload: Mapping[str, Any]) -> ShippingZone:
    details: List[Dict[str, Any]] = []

    name = _text(payload.get("name"))
    region = _text(payload.get("region"))
    if not name:
        details.append({"type": "validation", "path": "name", "reason": "name is required"})
    if not region:
        details.append({"type": "validation", "path": "region", "reason": "region is required"})
    if payload.get("base_rate") is None:
        details.append({"type": "validation", "path": "base_rate", "reason": "base_rate is required"})
    base_rate = _money(payload, "base_rate", details)
    cap = _money(payload, "same_region_cap_fee", details)
    rates = _parse_rates(payload.get("additional_rates"), details)
    if details:
        raise ZoneBadInput(details=details)

    is_default = bool(payload.get("is_default") or False)
    if is_default:
        _unset_other_defaults(db, vendor.id, keep_id=None)

    zone = ShippingZone(
        vendor_id=vendor.id,
        name=name,
        region=region,
        base_rate=base_rate or 0.0,
        is_default=is_default,
        vendor_region=_text(payload.get("vendor_region")) or region,
        same_region_cap_fee=cap,
        additional_rates=rates,
    )
    db.add(zone)
    db.commit()
    db.refresh(zone)

    log.info(
        "zone created: id=%s vendor=%s name=%r region=%r default=%s",
        zone.id,
        vendor.id,
        zone.name,
        zone.region,
        zone.is_default,
    )
    return zone


def update_zone(db: Session, vendor: User, zone_id: int, payload: Mapping[str, Any]) -> ShippingZone:
    """
    Partial update; only keys present in payload are applied.

    - is_default=True unsets the flag on the vendor's other zones
    - vendor_region also becomes the vendor's base_region; update_all_zones=True
      copies it onto every other zone of the vendor
    """
    zone = _owned_zone(db, vendor, zone_id)

    details: List[Dict[str, Any]] = []
    if "name" in payload and not _text(payload.get("name")):
        details.append({"type": "validation", "path": "name", "reason": "name must not be empty"})
    if "region" in payload and not _text(payload.get("region")):
        details.append({"type": "validation", "path": "region", "reason": "region must not be empty"})
    base_rate = _money(payload, "base_rate", details)
    cap = _money(payload, "same_region_cap_fee", details)
    rates = _parse_rates(payload.get("additional_rates"), details) if "additional_rates" in payload else None
    if details:
        raise ZoneBadInput(details=details)

    if payload.get("is_default") and not zone.is_default:
        _unset_other_defaults(db, vendor.id, keep_id=zone.id)

    if "name" in payload:
        zone.name = _text(payload["name"])
    if "region" in payload:
        zone.region = _text(payload["region"])
    if base_rate is not None:
        zone.base_rate = base_rate
    if payload.get("is_default") is not None:
        zone.is_default = bool(payload["is_default"])
    if "same_region_cap_fee" in payload:
        zone.same_region_cap_fee = cap
    if rates is not None:
        zone.additional_rates = rates

    vendor_region = _text(payload.get("vendor_region"))
    if vendor_region:
        zone.vendor_region = vendor_region
        vendor.base_region = vendor_region
        if payload.get("update_all_zones") is True:
            db.execute(
                update(ShippingZone)
                .where(ShippingZone.vendor_id == vendor.id, ShippingZone.id != zone.id)
                .values(vendor_region=vendor_region)
                .execution_options(synchronize_session="fetch")
            )
        log.info("vendor base region updated: vendor=%s region=%r", vendor.id, vendor_region)

    db.commit()
    db.refresh(zone)
    log.info("zone updated: id=%s vendor=%s", zone.id, vendor.id)
    return zone


def delete_zone(db: Session, vendor: User, zone_id: int) -> None:
    zone = _owned_zone(db, vendor, zone_id)
    if zone.is_default:
        raise DefaultZoneDeleteError(
            "Cannot delete the default shipping zone. Make another zone default first."
        )
    db.delete(zone)
    db.commit()
    log.info("zone deleted: id=%s vendor=%s", zone_id, vendor.id)


def sync_vendor_zone_regions(
    db: Session,
    vendor: User,
    base_region: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Copy the vendor's home region onto vendor_region of each of their zones.

    base_region given: it also becomes the vendor's base_region first.
    Returns one entry per zone: {id, name, old_region, new_region, changed}.
    """
    target = _text(base_region) or _text(vendor.base_region)
    if not target:
        raise ZoneBadInput(
            details=[{"type": "validation", "path": "base_region", "reason": "base region is required"}]
        )
    if target != vendor.base_region:
        vendor.base_region = target

    zones = db.scalars(
        select(ShippingZone).where(ShippingZone.vendor_id == vendor.id).order_by(ShippingZone.id.asc())
    ).all()

    results: List[Dict[str, Any]] = []
    for z in zones:
        old = z.vendor_region
        changed = old != target
        if changed:
            z.vendor_region = target
        results.append(
            {"id": z.id, "name": z.name, "old_region": old, "new_region": target, "changed": changed}
        )

    db.commit()
    log.info(
        "vendor zone regions synced: vendor=%s region=%r zones=%d changed=%d",
        vendor.id,
        target,
        len(results),
        sum(1 for r in results if r["changed"]),
    )
    return results
