# app/api/routers/shipping_routes_diagnostic.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.api.deps import require_super_admin
from app.api.problem import raise_404, raise_409
from app.api.routers.shipping_error_codes import ShippingErrorCode
from app.db.deps import get_db
from app.models.user import User
from app.services.shipping_diagnostic_errors import OrderNotFound, ShippingFixConflict
from app.services.shipping_diagnostic_service import (
    check_order_schema,
    diagnose_order_shipping_fees,
    diagnose_orders_by_created_at,
    fix_order_shipping_fees,
    fix_orders_by_created_at,
)


def register(router: APIRouter) -> None:
    @router.get("/shipping/diagnose/{order_id}")
    def diagnose_order(
        order_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
        _admin: User = Depends(require_super_admin),
    ):
        try:
            report = diagnose_order_shipping_fees(db, order_id)
        except OrderNotFound as e:
            raise_404(ShippingErrorCode.ORDER_NOT_FOUND, str(e), context={"order_id": order_id})
        return report.to_dict()

    @router.post("/shipping/fix/{order_id}")
    def fix_order(
        order_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
        _admin: User = Depends(require_super_admin),
    ):
        try:
            result = fix_order_shipping_fees(db, order_id)
        except OrderNotFound as e:
            raise_404(ShippingErrorCode.ORDER_NOT_FOUND, str(e), context={"order_id": order_id})
        except ShippingFixConflict as e:
            db.rollback()
            raise_409(
                ShippingErrorCode.FIX_CONFLICT,
                str(e),
                details=[{"type": "conflict", "order_id": e.order_id, "expected_version": e.expected_version}],
                next_actions=[{"action": "retry_fix", "label": "Diagnose again and retry"}],
            )

        if not result.success:
            db.rollback()
            report = result.diagnostic
            raise_409(
                ShippingErrorCode.FIX_REFUSED,
                result.message,
                details=[
                    {
                        "type": "state",
                        "order_id": order_id,
                        "reason": "degraded calculation" if report and report.is_degraded else "no positive fee",
                    }
                ],
            )

        db.commit()
        return result.to_dict()

    @router.get("/shipping/diagnose-range")
    def diagnose_range(
        time_from: datetime = Query(...),
        time_to: datetime = Query(...),
        limit: int = Query(200, ge=1, le=1000),
        db: Session = Depends(get_db),
        _admin: User = Depends(require_super_admin),
    ):
        reports = diagnose_orders_by_created_at(db, time_from, time_to, limit)
        return {
            "count": len(reports),
            "discrepancies": sum(1 for r in reports if r.has_discrepancy),
            "reports": [r.to_dict() for r in reports],
        }

    @router.post("/shipping/fix-range")
    def fix_range(
        time_from: datetime = Query(...),
        time_to: datetime = Query(...),
        limit: int = Query(200, ge=1, le=1000),
        db: Session = Depends(get_db),
        _admin: User = Depends(require_super_admin),
    ):
        results = fix_orders_by_created_at(db, time_from, time_to, limit)
        db.commit()
        return {
            "count": len(results),
            "fixed": sum(1 for r in results if r.success),
            "results": [r.to_dict() for r in results],
        }

    @router.get("/shipping/check-order-schema")
    def order_schema(
        db: Session = Depends(get_db),
        _admin: User = Depends(require_super_admin),
    ):
        return check_order_schema(db)
