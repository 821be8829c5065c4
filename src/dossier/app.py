"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from dossier.adapters.abr import AbrClient, SoleTraderCheckSource
from dossier.adapters.afsa import AfsaClient, DirectorBankruptcySource
from dossier.adapters.alares import (
    AlaresClient,
    AlaresWatchlistFeed,
    AsicReportSource,
    DirectorRelatedSource,
)
from dossier.adapters.corelogic import CoreLogicClient, PropertySource
from dossier.adapters.courtdata import CourtDataClient, DirectorCourtSource
from dossier.adapters.credentials import TokenCache, auth_for
from dossier.adapters.globalx import (
    GlobalXClient,
    LandTitleAddressSource,
    LandTitleOwnerSource,
    LandTitleReferenceSource,
    TitleOrders,
)
from dossier.adapters.ipaustralia import IpAustraliaClient, TrademarkSource
from dossier.adapters.ppsr import (
    PpsrClient,
    PpsrIndividualSource,
    PpsrOrganisationSource,
    PpsrVehicleSource,
)
from dossier.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from dossier.adapters.unclaimed import UnclaimedMoneyClient, UnclaimedMoneySource
from dossier.config import MissingConfigurationError, get_acquisition_config
from dossier.config.upstreams import (
    get_abr_config,
    get_afsa_config,
    get_alares_config,
    get_corelogic_config,
    get_courtdata_config,
    get_globalx_config,
    get_ipaustralia_config,
    get_ppsr_config,
    get_unclaimed_money_config,
)
from dossier.domain.acquisition import AdapterRegistry, Orchestrator, UnitOfWorkFactory
from dossier.domain.model import cache_report_type
from dossier.domain.watchlist import WatchlistSyncResult, sync_alerts

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from dossier.adapters.abr.schema import AbnDetails, NameMatch
    from dossier.config.upstreams import UpstreamConfig
    from dossier.domain.model import (
        NotificationDelta,
        ReportOptions,
        ReportSnapshot,
        ReportType,
        Subject,
    )
    from dossier.domain.watchlist import WatchlistFeed

log = getLogger(__name__)


@dataclass(slots=True)
class Upstreams:
    """Clients for every upstream whose configuration is present."""

    tokens: TokenCache = field(default_factory=lambda: TokenCache({}))
    abr: AbrClient | None = None
    alares: AlaresClient | None = None
    afsa: AfsaClient | None = None
    ppsr: PpsrClient | None = None
    courtdata: CourtDataClient | None = None
    globalx: GlobalXClient | None = None
    corelogic: CoreLogicClient | None = None
    ipaustralia: IpAustraliaClient | None = None
    unclaimed: UnclaimedMoneyClient | None = None


def _wire(
    config: UpstreamConfig, tokens: TokenCache
) -> tuple[UpstreamConfig, httpx.Auth | None]:
    if config.credentials is not None:
        tokens.register(config.name, config.credentials)
    return config, auth_for(tokens, config.name, config.credentials)


def _configure(
    getter: Callable[[], UpstreamConfig], tokens: TokenCache
) -> tuple[UpstreamConfig, httpx.Auth | None] | None:
    try:
        config = getter()
    except MissingConfigurationError as exc:
        log.warning("Skipping upstream: %s", exc)
        return None
    return _wire(config, tokens)


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_upstreams(tokens: TokenCache | None = None) -> Upstreams:
    upstreams = Upstreams(tokens=tokens or TokenCache({}))
    tokens = upstreams.tokens

    if configured := _configure(get_abr_config, tokens):
        upstreams.abr = AbrClient(config=configured[0])
    if configured := _configure(get_alares_config, tokens):
        upstreams.alares = AlaresClient(*configured)
    if configured := _configure(get_afsa_config, tokens):
        upstreams.afsa = AfsaClient(*configured)
    if configured := _configure(get_ppsr_config, tokens):
        upstreams.ppsr = PpsrClient(*configured)
    if configured := _configure(get_courtdata_config, tokens):
        upstreams.courtdata = CourtDataClient(*configured)
    if configured := _configure(get_globalx_config, tokens):
        upstreams.globalx = GlobalXClient(*configured)
    if configured := _configure(get_corelogic_config, tokens):
        upstreams.corelogic = CoreLogicClient(*configured)
    if configured := _configure(get_ipaustralia_config, tokens):
        upstreams.ipaustralia = IpAustraliaClient(*configured)
    if configured := _configure(get_unclaimed_money_config, tokens):
        upstreams.unclaimed = UnclaimedMoneyClient(*configured)
    return upstreams


def build_registry(upstreams: Upstreams) -> AdapterRegistry:
    """Register a source for every report type its upstream can serve."""
    registry = AdapterRegistry()
    if upstreams.abr is not None:
        registry.register(SoleTraderCheckSource(client=upstreams.abr))
    if upstreams.alares is not None:
        registry.register(AsicReportSource(client=upstreams.alares))
        registry.register(DirectorRelatedSource(client=upstreams.alares))
    if upstreams.afsa is not None:
        registry.register(DirectorBankruptcySource(client=upstreams.afsa))
    if upstreams.ppsr is not None:
        registry.register(PpsrOrganisationSource(client=upstreams.ppsr))
        registry.register(PpsrIndividualSource(client=upstreams.ppsr))
        registry.register(PpsrVehicleSource(client=upstreams.ppsr))
    if upstreams.courtdata is not None:
        registry.register(DirectorCourtSource(client=upstreams.courtdata))
    if upstreams.globalx is not None:
        orders = TitleOrders(client=upstreams.globalx)
        valuer = upstreams.corelogic
        registry.register(LandTitleReferenceSource(orders=orders, valuer=valuer))
        registry.register(LandTitleAddressSource(orders=orders, valuer=valuer))
        registry.register(
            LandTitleOwnerSource(orders=orders, registry=upstreams.abr, valuer=valuer)
        )
        if upstreams.corelogic is not None:
            registry.register(PropertySource(orders=orders, client=upstreams.corelogic))
    if upstreams.ipaustralia is not None:
        registry.register(TrademarkSource(client=upstreams.ipaustralia))
    if upstreams.unclaimed is not None:
        registry.register(UnclaimedMoneySource(client=upstreams.unclaimed))

    log.info("Registered sources for: %s", ", ".join(sorted(registry)))
    return registry


def build_orchestrator(
    *,
    registry: AdapterRegistry | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Orchestrator:
    _ensure_started()
    return Orchestrator(
        registry=registry or build_registry(build_upstreams()),
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyUnitOfWork,
        config=get_acquisition_config(),
    )


def acquire_report(
    subject: Subject,
    report_type: ReportType | str,
    options: ReportOptions | None = None,
    *,
    orchestrator: Orchestrator | None = None,
) -> ReportSnapshot:
    """Return the stored report for ``subject``, fetching it upstream when missing."""
    effective = orchestrator or build_orchestrator()
    snapshot = asyncio.run(effective.acquire(subject, report_type, options))
    log.info(
        "Report %s ready: snapshot=%s, key=%s, records=%s",
        snapshot.report_type,
        snapshot.id,
        snapshot.subject_key,
        snapshot.record_count,
    )
    return snapshot


def _store_orchestrator(unit_of_work_factory: UnitOfWorkFactory | None) -> Orchestrator:
    _ensure_started()
    return Orchestrator(
        registry=AdapterRegistry(),
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyUnitOfWork,
    )


def check_existing_report(
    report_type: ReportType | str,
    subject_key: str,
    *,
    orchestrator: Orchestrator | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReportSnapshot | None:
    effective = orchestrator or _store_orchestrator(unit_of_work_factory)
    return asyncio.run(effective.check_existing(report_type, subject_key))


def apply_notification(
    delta: NotificationDelta,
    *,
    orchestrator: Orchestrator | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReportSnapshot:
    """Merge a monitoring notification into the latest stored snapshot it targets.

    The merge is serialised against acquisitions of the same key only when it runs
    on the orchestrator doing those acquisitions, so long-running callers should
    pass theirs. Without one a store-only orchestrator is built for this call.
    """
    effective = orchestrator or _store_orchestrator(unit_of_work_factory)
    snapshot = asyncio.run(effective.apply_delta(delta))
    log.info(
        "Applied %s to %s/%s: alert_count=%s",
        delta.kind,
        cache_report_type(delta.target_report_type),
        delta.target_subject_key,
        snapshot.alert_count,
    )
    return snapshot


def _default_feed() -> WatchlistFeed:
    config = get_alares_config()
    watchlist_id = config.options.get("watchlist_id")
    if not watchlist_id:
        raise MissingConfigurationError(["ALARES_WATCHLIST_ID"])
    client = AlaresClient(*_wire(config, TokenCache({})))
    return AlaresWatchlistFeed(watchlist_id, client=client)


def sync_watchlist(
    *,
    feed: WatchlistFeed | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> WatchlistSyncResult:
    """Copy monitoring alert counts onto stored snapshots."""
    _ensure_started()
    effective_feed = feed or _default_feed()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    entities = asyncio.run(effective_feed.entities())
    return sync_alerts(entities, effective_uow)


def search_companies(
    term: str, *, client: AbrClient | None = None
) -> list[AbnDetails] | list[NameMatch]:
    """Business register lookup by number or name."""
    effective = client or AbrClient()
    return asyncio.run(effective.search_company(term))
