# app/services/shipping_zone_errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ZoneNotFound(Exception):
    pass


class ZoneForbidden(Exception):
    pass


class DefaultZoneDeleteError(Exception):
    pass


@dataclass
class ZoneBadInput(Exception):
    details: list[dict[str, Any]]
