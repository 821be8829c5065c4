"""Alembic environment for the snapshot store.

``upgrade_head`` hands over an open connection; the command line falls back to
``DATABASE_URI`` or the SQLite file in the data directory.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from dossier.adapters.sqlalchemy import mapper_registry, start_mappers
from dossier.config.storage import get_database_uri

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Connection

config = context.config
log = logging.getLogger("alembic.env")

start_mappers()

target_metadata = mapper_registry.metadata
# SQLite cannot ALTER most columns in place
BATCH_OPTIONS = {"render_as_batch": True, "compare_type": True}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_uri()


@contextmanager
def _connection() -> Iterator[Connection]:
    handed_over: Connection | None = config.attributes.get("connection")
    if handed_over is not None:
        yield handed_over
        return
    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            yield connection
    finally:
        engine.dispose()


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(), target_metadata=target_metadata, literal_binds=True, **BATCH_OPTIONS
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with _connection() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **BATCH_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()
    log.debug("Snapshot store migrations applied")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
