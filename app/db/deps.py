"""
Database dependency (thin forward to app.db.session).

Routers depend on this module so tests can override a single get_db.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.orm import Session

from app.db.session import get_db as _get_db


def get_db() -> Generator[Session, None, None]:
    """
    Usage: def endpoint(db: Session = Depends(get_db)): ...
    """
    yield from _get_db()
