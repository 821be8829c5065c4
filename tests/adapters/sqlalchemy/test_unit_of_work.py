from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from dossier.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from dossier.domain.model import ReportType
from tests.helpers.snapshots import make_snapshot

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(StartupError):
        _ = SqlAlchemyUnitOfWork().repositories


def test_unit_of_work_persists_snapshots(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        snapshot = make_snapshot(document={"uuid": "doc-1", "data": {"cases": []}})
        uow.repositories.snapshots.add(snapshot)
        uow.commit()
        snapshot_id = snapshot.id

    # attributes stay readable once the session is closed
    assert snapshot.document["uuid"] == "doc-1"

    with SqlAlchemyUnitOfWork() as uow:
        stored = uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556")
        assert stored is not None
        assert stored.id == snapshot_id
        assert stored.document == {"uuid": "doc-1", "data": {"cases": []}}


def test_unit_of_work_discards_uncommitted_changes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.snapshots.add(make_snapshot())

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556") is None


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyUnitOfWork() as uow:
        uow.repositories.snapshots.add(make_snapshot())
        raise RuntimeError("boom")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.snapshots.for_business_number("51824753556") == []


def test_document_replacement_is_saved(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.snapshots.add(make_snapshot(document={"uuid": "doc-1"}))
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        stored = uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556")
        assert stored is not None
        stored.document = {**stored.document, "riskFactors": {"insolvencyRisk": "HIGH"}}
        stored.alert_flag = True
        stored.alert_count = 1
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        stored = uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556")
        assert stored is not None
        assert stored.document["riskFactors"] == {"insolvencyRisk": "HIGH"}
        assert stored.alert_count == 1
