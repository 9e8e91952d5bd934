# app/db/base.py
from __future__ import annotations

import importlib
import logging
from typing import Iterable, List, Set

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("shipfee.models")

# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Single ORM Base for the whole service."""

    pass


_INITIALIZED: bool = False

MODEL_MODULES = [
    "app.models.user",
    "app.models.product",
    "app.models.shipping_zone",
    "app.models.shipping_zone_rate",
    "app.models.order",
]


def init_models(
    *,
    extra_modules: Iterable[str] | None = None,
    force: bool = False,
) -> None:
    """
    Import every model module, then configure mappers once so string
    relationship targets are resolved before the first query.
    """
    global _INITIALIZED
    if _INITIALIZED and not force:
        log.debug("init_models() called again; already initialized, skipping.")
        return

    seen: Set[str] = set()
    loaded: List[str] = []
    for mod in [*MODEL_MODULES, *(extra_modules or [])]:
        if mod in seen:
            continue
        seen.add(mod)
        importlib.import_module(mod)
        loaded.append(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (loaded %d modules)", len(loaded))
