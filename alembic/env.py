# alembic/env.py
from __future__ import annotations

import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.pool import NullPool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# models are loaded after logging is configured
from app.db.base import Base, init_models  # noqa: E402
from app.db.session import _normalize_dsn  # noqa: E402


def include_object(
    obj: Any, name: str | None, type_: str, reflected: bool, compare_to: Any
) -> bool:
    """
    Objects that exist only in the database (reflected, no model counterpart)
    never take part in the diff, so autogenerate does not emit drops for them.
    """
    if reflected and compare_to is None:
        return False
    return True


def get_url() -> str:
    """
    Priority:
      1. DATABASE_URL
      2. sqlalchemy.url in alembic.ini
    """
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("Alembic cannot resolve a database URL: set DATABASE_URL or sqlalchemy.url")
    return _normalize_dsn(url)


def run_migrations_offline() -> None:
    init_models()
    context.configure(
        url=get_url(),
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=False,
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    init_models()
    url = get_url()
    engine = create_engine(url, poolclass=NullPool, future=True)

    with engine.connect() as connection:  # type: Connection
        context.configure(
            connection=connection,
            target_metadata=Base.metadata,
            compare_type=True,
            compare_server_default=False,
            include_object=include_object,
            render_as_batch=url.startswith("sqlite"),
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
