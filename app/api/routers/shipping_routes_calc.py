# app/api/routers/shipping_routes_calc.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.problem import raise_422
from app.api.routers.shipping_error_codes import ShippingErrorCode
from app.api.routers.shipping_schemas import ShippingCalcIn, ShippingCalcOut
from app.db.deps import get_db
from app.services.shipping_fee import (
    ShippingInputError,
    calculate_estimated_delivery,
    calculate_shipping_fees,
)


def register(router: APIRouter) -> None:
    @router.post(
        "/shipping/calculate",
        response_model=ShippingCalcOut,
        status_code=status.HTTP_200_OK,
    )
    def calculate_shipping(
        payload: ShippingCalcIn,
        db: Session = Depends(get_db),
    ):
        cart_items = [it.model_dump(exclude_none=True) for it in payload.cart_items]
        address_info = payload.address_info.model_dump(exclude_none=True) if payload.address_info else None

        try:
            result = calculate_shipping_fees(db, cart_items, address_info)
        except ShippingInputError as e:
            raise_422(
                ShippingErrorCode.CALC_MISSING_INPUT,
                str(e),
                details=[{"type": "validation", "path": "body", "reason": "cart_items and address_info are required"}],
            )

        out = result.to_dict()
        out["estimated_delivery"] = calculate_estimated_delivery()
        return out
