# app/api/routers/shipping_helpers.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from app.api.problem import raise_403, raise_404, raise_409, raise_422
from app.api.routers.shipping_error_codes import ShippingErrorCode
from app.services.shipping_zone_errors import (
    DefaultZoneDeleteError,
    ZoneBadInput,
    ZoneForbidden,
    ZoneNotFound,
)


@contextmanager
def zone_problems(invalid_code: str = ShippingErrorCode.ZONE_INVALID) -> Iterator[None]:
    """Translate zone/preference service errors into Problem responses."""
    try:
        yield
    except ZoneNotFound as e:
        raise_404(ShippingErrorCode.ZONE_NOT_FOUND, str(e))
    except ZoneForbidden as e:
        raise_403(ShippingErrorCode.ZONE_FORBIDDEN, str(e))
    except DefaultZoneDeleteError as e:
        raise_409(
            ShippingErrorCode.ZONE_DEFAULT_DELETE,
            str(e),
            next_actions=[{"action": "set_default_zone", "label": "Make another zone default"}],
        )
    except ZoneBadInput as e:
        raise_422(invalid_code, "Invalid shipping configuration", details=e.details)
