from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from dossier.adapters.sqlalchemy import start_mappers
from dossier.adapters.sqlalchemy.migrations import upgrade_head
from dossier.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from dossier.config.acquisition import AcquisitionConfig, RetrySettings

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

IN_MEMORY_URI = "sqlite+pysqlite:///:memory:"


@pytest.fixture(autouse=True)
def isolated_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Keep HTTP caches and fallback databases out of the user's data directory."""
    data_dir = tmp_path / "dossier-data"
    monkeypatch.setenv("DOSSIER_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(IN_MEMORY_URI, future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    with sessionmaker(bind=sqlite_engine, expire_on_commit=False)() as session:
        yield session


@pytest.fixture
def sqlite_unit_of_work(sqlite_engine: Engine) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    """Started snapshot store over ``sqlite_engine``; shut down after the test."""
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def fast_config() -> AcquisitionConfig:
    """Production timings; tests inject recording sleeps so nothing actually waits."""
    return AcquisitionConfig(
        call_timeout=5.0,
        ppsr_result_delay=3.0,
        order_result_delay=50.0,
        report_result_delay=5.0,
        retry=RetrySettings(max_attempts=5, base_delay=3.0, max_delay=15.0),
        page_size=20,
        page_delay=0.5,
        acquire_timeout=30.0,
    )
