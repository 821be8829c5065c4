from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import pytest

from dossier import app
from dossier.adapters.abr import AbrClient
from dossier.adapters.corelogic import CoreLogicClient
from dossier.adapters.globalx import GlobalXClient
from dossier.adapters.ppsr import PpsrClient
from dossier.config import MissingConfigurationError
from dossier.domain.acquisition import AdapterRegistry
from dossier.domain.model import DeltaKind, NotificationDelta, Organisation, ReportType
from dossier.domain.watchlist import WatchlistEntity
from tests.helpers.http import mock_client_factory, upstream_config
from tests.helpers.snapshots import CountingSource, make_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable

    from dossier.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork

UPSTREAM_VARIABLES = (
    "ABN_GUID",
    "ALARES_API_TOKEN",
    "AFSA_CLIENT_ID",
    "PPSR_CLIENT_ID",
    "COURTDATA_API_KEY",
    "GLOBALX_CLIENT_ID",
    "CORELOGIC_CLIENT_ID",
    "IPAUSTRALIA_CLIENT_ID",
    "UNCLAIMED_MONEY_API_KEY",
)


def test_registry_only_serves_configured_upstreams() -> None:
    upstreams = app.Upstreams(
        abr=AbrClient(config=upstream_config("abr", guid="g")),
        ppsr=PpsrClient(config=upstream_config("ppsr")),
        globalx=GlobalXClient(config=upstream_config("globalx")),
    )

    registry = app.build_registry(upstreams)

    assert ReportType.SOLE_TRADER_CHECK in registry
    assert ReportType.VEHICLE_PPSR in registry
    assert ReportType.LAND_TITLE_ORGANISATION in registry
    assert ReportType.PROPERTY not in registry
    assert ReportType.ASIC_CURRENT not in registry


def test_property_reports_need_corelogic_too() -> None:
    upstreams = app.Upstreams(
        globalx=GlobalXClient(config=upstream_config("globalx")),
        corelogic=CoreLogicClient(config=upstream_config("corelogic")),
    )

    registry = app.build_registry(upstreams)

    assert ReportType.PROPERTY in registry
    assert ReportType.DIRECTOR_PROPERTY in registry


def test_build_upstreams_skips_unconfigured_providers(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in UPSTREAM_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ABN_GUID", "guid")
    monkeypatch.setenv("COURTDATA_API_KEY", "key")

    upstreams = app.build_upstreams()

    assert upstreams.abr is not None
    assert upstreams.courtdata is not None
    assert upstreams.courtdata.auth is not None
    assert upstreams.alares is None
    assert upstreams.globalx is None


def test_acquire_and_check_against_sqlite(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    source = CountingSource()
    registry = AdapterRegistry()
    registry.register(source)
    orchestrator = app.build_orchestrator(
        registry=registry, unit_of_work_factory=sqlite_unit_of_work
    )
    acme = Organisation("51824753556", name="ACME PTY LTD")

    first = app.acquire_report(acme, "asic-current", orchestrator=orchestrator)
    second = app.acquire_report(acme, "ato", orchestrator=orchestrator)
    stored = app.check_existing_report(
        "court", "51824753556", unit_of_work_factory=sqlite_unit_of_work
    )

    assert first.id is not None
    assert second.id == first.id
    assert stored is not None
    assert stored.id == first.id
    assert source.calls == 1


def test_apply_notification_persists_merge(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.snapshots.add(make_snapshot(document={"uuid": "d", "data": {}}))
        uow.commit()
    delta = NotificationDelta(
        target_subject_key="51824753556",
        target_report_type=ReportType.ATO,
        kind=DeltaKind.TAX_DEBT_UPDATE,
        payload={"amount": 1000},
    )

    app.apply_notification(delta, unit_of_work_factory=sqlite_unit_of_work)
    app.apply_notification(delta, unit_of_work_factory=sqlite_unit_of_work)

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556")
        assert stored is not None
        assert stored.document["data"]["taxDebt"]["amount"] == 1000
        assert stored.alert_count == 1


def test_check_and_merge_reuse_the_acquiring_orchestrator(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    registry = AdapterRegistry()
    registry.register(CountingSource())
    orchestrator = app.build_orchestrator(
        registry=registry, unit_of_work_factory=sqlite_unit_of_work
    )
    acme = Organisation("51824753556", name="ACME PTY LTD")
    delta = NotificationDelta(
        target_subject_key="51824753556",
        target_report_type=ReportType.COURT,
        kind=DeltaKind.NEW_CASE,
        payload={"caseNumber": "2025/001"},
    )

    acquired = app.acquire_report(acme, "asic-current", orchestrator=orchestrator)
    merged = app.apply_notification(delta, orchestrator=orchestrator)
    stored = app.check_existing_report("court", "51824753556", orchestrator=orchestrator)

    assert merged.id == acquired.id
    assert stored is not None
    assert stored.alert_count == 1


class StaticFeed:
    def __init__(self, *entities: WatchlistEntity) -> None:
        self._entities = list(entities)

    async def entities(self) -> list[WatchlistEntity]:
        return self._entities


def test_sync_watchlist_updates_stored_snapshots(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.snapshots.add(make_snapshot(created_at=datetime(2025, 1, 1, tzinfo=UTC)))
        uow.commit()
    feed = StaticFeed(
        WatchlistEntity("7", "51824753556", 4, datetime(2025, 3, 1, tzinfo=UTC))
    )

    result = app.sync_watchlist(feed=feed, unit_of_work_factory=sqlite_unit_of_work)

    assert result.updated == 1
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.snapshots.latest(ReportType.ASIC_CURRENT, "51824753556")
        assert stored is not None
        assert stored.alert_flag is True
        assert stored.alert_count == 4


def test_sync_watchlist_requires_a_watchlist_id(
    monkeypatch: pytest.MonkeyPatch,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    monkeypatch.setenv("ALARES_API_TOKEN", "token")
    monkeypatch.delenv("ALARES_WATCHLIST_ID", raising=False)

    with pytest.raises(MissingConfigurationError, match="ALARES_WATCHLIST_ID"):
        app.sync_watchlist(unit_of_work_factory=sqlite_unit_of_work)


def test_search_companies_uses_register_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["name"] == "acme"
        return httpx.Response(
            200, text='callback({"Message": "", "Names": [{"Abn": "51824753556", "Name": "ACME"}]})'
        )

    client = AbrClient(
        config=upstream_config("abr", guid="g"), client_factory=mock_client_factory(handler)
    )

    matches = app.search_companies("acme", client=client)

    assert [match.name for match in matches] == ["ACME"]
