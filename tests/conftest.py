# tests/conftest.py
from __future__ import annotations

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ============================================================
# must be set before anything under app.* reads settings
# ============================================================
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.db.base import Base, init_models  # noqa: E402

init_models()


def _enable_sqlite_fk(dbapi_conn, _record) -> None:
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


# =========================================
# one in-memory database per test
# =========================================
@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    event.listen(eng, "connect", _enable_sqlite_fk)
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture(scope="function")
def session_maker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, class_=Session)


@pytest.fixture(scope="function")
def db(session_maker) -> Generator[Session, None, None]:
    sess = session_maker()
    try:
        yield sess
    finally:
        sess.close()


@pytest.fixture(scope="function")
def client(session_maker):
    """
    TestClient with get_db pointed at the per-test engine.
    """
    from fastapi.testclient import TestClient

    from app.db.deps import get_db
    from app.main import app

    def _override_get_db():
        sess = session_maker()
        try:
            yield sess
        finally:
            sess.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
