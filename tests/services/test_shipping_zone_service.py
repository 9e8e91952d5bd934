# tests/services/test_shipping_zone_service.py
from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.shipping_zone import ShippingZone
from app.models.shipping_zone_rate import ShippingZoneRate
from app.services import shipping_zone_service as svc
from app.services.shipping_zone_errors import (
    DefaultZoneDeleteError,
    ZoneBadInput,
    ZoneForbidden,
    ZoneNotFound,
)
from tests.factories import make_super_admin, make_vendor, make_zone


def _defaults(db: Session, vendor_id: int) -> list[int]:
    return list(
        db.scalars(
            select(ShippingZone.id).where(
                ShippingZone.vendor_id == vendor_id, ShippingZone.is_default.is_(True)
            )
        ).all()
    )


def test_create_zone_with_rates(db: Session):
    v = make_vendor(db)

    z = svc.create_zone(
        db,
        v,
        {
            "name": "Accra",
            "region": "Greater Accra",
            "base_rate": 40,
            "additional_rates": [
                {"kind": "weight", "threshold": 5, "additional_fee": 15},
                {"type": "price", "threshold": 500, "additional_fee": -5},
            ],
        },
    )

    assert z.id is not None
    assert z.vendor_id == v.id
    assert z.vendor_region == "Greater Accra"
    assert [(r.kind, r.threshold, r.additional_fee) for r in z.additional_rates] == [
        ("weight", 5.0, 15.0),
        ("price", 500.0, -5.0),
    ]


def test_create_rejects_bad_payload(db: Session):
    v = make_vendor(db)

    with pytest.raises(ZoneBadInput) as ei:
        svc.create_zone(
            db,
            v,
            {"name": "", "region": "X", "base_rate": -1, "additional_rates": [{"kind": "volume"}]},
        )

    paths = {d["path"] for d in ei.value.details}
    assert {"name", "base_rate", "additional_rates[0].kind"} <= paths
    assert db.scalar(select(func.count()).select_from(ShippingZone)) == 0


def test_only_one_default_zone_per_vendor(db: Session):
    v = make_vendor(db)
    other = make_vendor(db)
    a = svc.create_zone(db, v, {"name": "A", "region": "R1", "base_rate": 1, "is_default": True})
    theirs = make_zone(db, other, name="T", region="R1", base_rate=1, is_default=True)

    b = svc.create_zone(db, v, {"name": "B", "region": "R2", "base_rate": 2, "is_default": True})
    assert _defaults(db, v.id) == [b.id]

    c = svc.create_zone(db, v, {"name": "C", "region": "R3", "base_rate": 3})
    svc.update_zone(db, v, c.id, {"is_default": True})
    assert _defaults(db, v.id) == [c.id]

    db.refresh(a)
    assert a.is_default is False
    # another vendor's default is untouched
    assert _defaults(db, other.id) == [theirs.id]


def test_update_is_partial(db: Session):
    v = make_vendor(db)
    z = make_zone(db, v, name="Accra", region="Greater Accra", base_rate=40, rates=[("weight", 5, 15)])

    out = svc.update_zone(db, v, z.id, {"base_rate": 45})

    assert out.base_rate == 45
    assert out.name == "Accra"
    assert len(out.additional_rates) == 1

    out = svc.update_zone(db, v, z.id, {"additional_rates": []})
    assert out.additional_rates == []


def test_update_vendor_region_propagates_when_asked(db: Session):
    v = make_vendor(db, base_region="Ashanti")
    z1 = make_zone(db, v, name="A", region="R1", base_rate=1, vendor_region="Ashanti")
    z2 = make_zone(db, v, name="B", region="R2", base_rate=1, vendor_region="Ashanti")

    svc.update_zone(db, v, z1.id, {"vendor_region": "Greater Accra"})
    db.refresh(z2)
    db.refresh(v)
    assert v.base_region == "Greater Accra"
    assert z2.vendor_region == "Ashanti"

    svc.update_zone(db, v, z1.id, {"vendor_region": "Volta", "update_all_zones": True})
    db.refresh(z2)
    assert z2.vendor_region == "Volta"


def test_delete_default_zone_is_rejected(db: Session):
    v = make_vendor(db)
    z = make_zone(db, v, name="Home", region="R", base_rate=1, is_default=True)

    with pytest.raises(DefaultZoneDeleteError):
        svc.delete_zone(db, v, z.id)

    assert db.get(ShippingZone, z.id) is not None


def test_delete_removes_zone_and_rates(db: Session):
    v = make_vendor(db)
    z = make_zone(db, v, name="A", region="R", base_rate=1, rates=[("weight", 1, 1), ("price", 1, 1)])
    zid = z.id

    svc.delete_zone(db, v, zid)

    db.expire_all()
    assert db.get(ShippingZone, zid) is None
    assert (
        db.scalar(select(func.count()).select_from(ShippingZoneRate).where(ShippingZoneRate.zone_id == zid))
        == 0
    )


def test_other_vendors_zone_is_forbidden(db: Session):
    v = make_vendor(db)
    other = make_vendor(db)
    z = make_zone(db, other, name="A", region="R", base_rate=1)

    with pytest.raises(ZoneForbidden):
        svc.update_zone(db, v, z.id, {"base_rate": 2})
    with pytest.raises(ZoneForbidden):
        svc.delete_zone(db, v, z.id)
    with pytest.raises(ZoneForbidden):
        svc.get_zone(db, z.id, v)
    with pytest.raises(ZoneNotFound):
        svc.get_zone(db, 999_999, v)


def test_list_scoping(db: Session):
    v = make_vendor(db)
    other = make_vendor(db)
    admin = make_super_admin(db)
    make_zone(db, v, name="B", region="R", base_rate=1)
    make_zone(db, v, name="A", region="R", base_rate=1)
    make_zone(db, other, name="C", region="R", base_rate=1)
    make_zone(db, None, name="G", region="R", base_rate=1)

    assert [z.name for z in svc.list_zones(db, v)] == ["A", "B"]
    assert [z.name for z in svc.list_zones(db, admin)] == ["A", "B", "C", "G"]


def test_sync_vendor_zone_regions(db: Session):
    v = make_vendor(db, base_region="Greater Accra")
    z1 = make_zone(db, v, name="A", region="R", base_rate=1, vendor_region="Greater Accra")
    z2 = make_zone(db, v, name="B", region="R", base_rate=1, vendor_region="Volta")
    z3 = make_zone(db, v, name="C", region="R", base_rate=1)

    results = svc.sync_vendor_zone_regions(db, v)

    assert [(r["id"], r["changed"]) for r in results] == [(z1.id, False), (z2.id, True), (z3.id, True)]
    assert results[1]["old_region"] == "Volta"
    assert all(r["new_region"] == "Greater Accra" for r in results)

    again = svc.sync_vendor_zone_regions(db, v)
    assert not any(r["changed"] for r in again)


def test_sync_with_new_base_region_updates_vendor(db: Session):
    v = make_vendor(db, base_region="Ashanti")
    z = make_zone(db, v, name="A", region="R", base_rate=1, vendor_region="Ashanti")

    svc.sync_vendor_zone_regions(db, v, "Northern")

    db.refresh(v)
    db.refresh(z)
    assert v.base_region == "Northern"
    assert z.vendor_region == "Northern"


def test_sync_without_any_region_is_bad_input(db: Session):
    v = make_vendor(db)
    with pytest.raises(ZoneBadInput):
        svc.sync_vendor_zone_regions(db, v)
