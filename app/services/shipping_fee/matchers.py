# app/services/shipping_fee/matchers.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.shipping_zone import ShippingZone

log = logging.getLogger("shipfee.shipping.zones")

TIER_VENDOR_REGION = "vendor_region"
TIER_VENDOR_REGION_SHORT = "vendor_region_short"
TIER_VENDOR_CITY = "vendor_city"
TIER_VENDOR_DEFAULT = "vendor_default"
TIER_GLOBAL_MATCH = "global_match"
TIER_GLOBAL_DEFAULT = "global_default"
TIER_FALLBACK = "fallback"

FALLBACK_ZONE_NAME = "Default Zone"

# (kind, threshold, additional_fee)
RateRule = Tuple[str, float, float]


@dataclass(frozen=True)
class ZoneMatch:
    """
    Result of the tiered zone lookup.

    zone is None only for the synthetic zero-rate fallback.
    """

    zone: Optional[ShippingZone]
    tier: str
    name: str
    base_rate: float
    rules: List[RateRule] = field(default_factory=list)

    @property
    def is_vendor_zone(self) -> bool:
        return self.tier in (TIER_VENDOR_REGION, TIER_VENDOR_REGION_SHORT, TIER_VENDOR_CITY, TIER_VENDOR_DEFAULT)

    @classmethod
    def of(cls, zone: ShippingZone, tier: str) -> "ZoneMatch":
        rules = [
            (str(r.kind or "").lower(), float(r.threshold or 0.0), float(r.additional_fee or 0.0))
            for r in (zone.additional_rates or [])
        ]
        return cls(
            zone=zone,
            tier=tier,
            name=zone.name,
            base_rate=float(zone.base_rate or 0.0),
            rules=rules,
        )

    @classmethod
    def fallback(cls) -> "ZoneMatch":
        return cls(zone=None, tier=TIER_FALLBACK, name=FALLBACK_ZONE_NAME, base_rate=0.0)


def normalize_region_name(region: Optional[str]) -> str:
    """'Greater Accra Region' -> 'accra'; used to compare vendor and customer regions."""
    s = (region or "").strip().lower()
    s = re.sub(r"\s*region$", "", s).strip()
    s = re.sub(r"^greater\s*", "", s).strip()
    return s


def _icontains(col, needle: str):
    return func.lower(col).contains(needle, autoescape=True)


def _first(db: Session, *conds) -> Optional[ShippingZone]:
    return (
        db.query(ShippingZone)
        .filter(*conds)
        .order_by(ShippingZone.updated_at.desc(), ShippingZone.id.desc())
        .first()
    )


def _match_vendor_zone(db: Session, city: str, region: str, vendor_id: int) -> Optional[ZoneMatch]:
    owned = ShippingZone.vendor_id == vendor_id

    if region:
        z = _first(db, owned, _icontains(ShippingZone.region, region))
        if z is not None:
            return ZoneMatch.of(z, TIER_VENDOR_REGION)

        # "greater accra region" vs stored "Greater Accra"
        if "region" in region:
            short = region.replace("region", "", 1).strip()
            if short:
                z = _first(db, owned, _icontains(ShippingZone.region, short))
                if z is not None:
                    return ZoneMatch.of(z, TIER_VENDOR_REGION_SHORT)

    # zone names are usually city names
    if city:
        z = _first(db, owned, _icontains(ShippingZone.name, city))
        if z is not None:
            return ZoneMatch.of(z, TIER_VENDOR_CITY)

    z = _first(db, owned, ShippingZone.is_default.is_(True))
    if z is not None:
        return ZoneMatch.of(z, TIER_VENDOR_DEFAULT)

    return None


def _match_global_zone(db: Session, city: str, region: str) -> Optional[ZoneMatch]:
    is_global = ShippingZone.vendor_id.is_(None)

    conds = []
    if region:
        conds.append(_icontains(ShippingZone.region, region))
    if city:
        conds.append(_icontains(ShippingZone.name, city))
    if conds:
        z = _first(db, is_global, or_(*conds))
        if z is not None:
            return ZoneMatch.of(z, TIER_GLOBAL_MATCH)

    z = _first(db, is_global, ShippingZone.is_default.is_(True))
    if z is not None:
        return ZoneMatch.of(z, TIER_GLOBAL_DEFAULT)

    return None


def find_shipping_zone(
    db: Session,
    city: Optional[str],
    region: Optional[str],
    vendor_id: Optional[int],
    *,
    vendor_only: bool = False,
) -> ZoneMatch:
    """
    Tiered zone lookup, first hit wins:

    1) vendor zone whose region contains the destination region
    2) same, with the word "region" stripped from the destination
    3) vendor zone whose name contains the destination city
    4) vendor default zone
    5) global zone matching region or city
    6) global default zone
    7) synthetic zero-rate zone

    Read-only: stale zone.vendor_region is repaired by
    shipping_zone_service.sync_vendor_zone_regions, never here.
    vendor_only=True stops after tier 4 (degraded calculation).
    """
    c = (city or "").strip().lower()
    r = (region or "").strip().lower()

    if vendor_id is not None:
        m = _match_vendor_zone(db, c, r, vendor_id)
        if m is not None:
            log.debug("zone_match: vendor=%s tier=%s zone=%s", vendor_id, m.tier, m.name)
            return m
    else:
        log.warning("zone lookup without vendor id: vendor-specific zones skipped")

    if not vendor_only:
        m = _match_global_zone(db, c, r)
        if m is not None:
            log.debug("zone_match: vendor=%s tier=%s zone=%s", vendor_id, m.tier, m.name)
            return m

    log.info("no shipping zone for vendor=%s city=%r region=%r; zero-rate fallback", vendor_id, c, r)
    return ZoneMatch.fallback()
