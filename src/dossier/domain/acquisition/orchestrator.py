"""Cache-or-fetch orchestration of report acquisition."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

import httpx
from pydantic import ValidationError

from dossier.config.acquisition import AcquisitionConfig
from dossier.domain.deltas import MergeEngine
from dossier.domain.errors import (
    AcquisitionError,
    ErrorCode,
    InvalidInputError,
    SnapshotNotFoundError,
    SourceAPIError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from dossier.domain.model import (
    Individual,
    Organisation,
    ReportOptions,
    ReportSnapshot,
    ReportType,
    cache_report_type,
    utcnow,
)

from .keys import search_label, subject_key
from .normalization import to_document
from .polling import JobPoller
from .single_flight import KeyedLocks, SingleFlight
from .sources import FetchContext, SourceRequest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable
    from datetime import datetime

    from dossier.domain.model import NotificationDelta, Subject
    from dossier.domain.ports.unit_of_work import SnapshotUnitOfWork

    from .registry import AdapterRegistry
    from .sources import ReportSource, SourceResult

type UnitOfWorkFactory = Callable[[], SnapshotUnitOfWork]

log = getLogger(__name__)


def _coerce_report_type(report_type: ReportType | str) -> ReportType:
    try:
        return ReportType(report_type)
    except ValueError as exc:
        msg = f"unknown report type: {report_type!r}"
        raise InvalidInputError(msg) from exc


@dataclass(slots=True)
class Orchestrator:
    """Serves reports from the snapshot store, fetching upstream on a miss.

    At most one acquisition runs per ``(cache report type, subject key)``; concurrent
    callers share its result. Delta merges for a key wait for that acquisition.
    """

    registry: AdapterRegistry
    unit_of_work_factory: UnitOfWorkFactory
    config: AcquisitionConfig = field(default_factory=AcquisitionConfig)
    merge_engine: MergeEngine = field(default_factory=MergeEngine)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    poller: JobPoller | None = None
    _flights: SingleFlight[ReportSnapshot] = field(default_factory=SingleFlight, init=False)
    _locks: KeyedLocks = field(default_factory=KeyedLocks, init=False)
    _poller: JobPoller = field(init=False)

    def __post_init__(self) -> None:
        if self.poller is None:
            self.poller = JobPoller(retry=self.config.retry, sleep=self.sleep)
        self._poller = self.poller

    async def acquire(
        self,
        subject: Subject,
        report_type: ReportType | str,
        options: ReportOptions | None = None,
    ) -> ReportSnapshot:
        report_type = _coerce_report_type(report_type)
        options = options or ReportOptions()
        source = self.registry.resolve(report_type)
        key = subject_key(subject, report_type, options)
        request = SourceRequest(
            subject=subject, report_type=report_type, options=options, subject_key=key
        )
        source.validate(request)

        cache_type = cache_report_type(report_type)
        cached = self._cached(cache_type, key, subject)
        if cached is not None:
            log.info("Cache hit for %s/%s (snapshot %s)", cache_type, key, cached.id)
            return cached

        return await self._flights.do(
            (cache_type, key), lambda: self._acquire_exclusive(source, request, cache_type)
        )

    async def check_existing(
        self, report_type: ReportType | str, key: str
    ) -> ReportSnapshot | None:
        return self._latest(cache_report_type(_coerce_report_type(report_type)), key)

    async def apply_delta(self, delta: NotificationDelta) -> ReportSnapshot:
        cache_type = cache_report_type(delta.target_report_type)
        key = delta.target_subject_key
        async with self._locks.hold((cache_type, key)):
            with self.unit_of_work_factory() as uow:
                snapshot = uow.repositories.snapshots.latest(cache_type, key)
                if snapshot is None:
                    msg = f"no stored {cache_type} snapshot for {key}"
                    raise SnapshotNotFoundError(msg)
                self.merge_engine.apply(delta, snapshot)
                uow.commit()
        return snapshot

    async def _acquire_exclusive(
        self, source: ReportSource, request: SourceRequest, cache_type: ReportType
    ) -> ReportSnapshot:
        async with self._locks.hold((cache_type, request.subject_key)):
            cached = self._cached(cache_type, request.subject_key, request.subject)
            if cached is not None:
                return cached
            log.info("Cache miss for %s/%s, fetching", cache_type, request.subject_key)
            started = utcnow()
            result = await self._fetch(source, request)
            async with self._hold_sub_units(result, (cache_type, request.subject_key)):
                return self._store(source, request, cache_type, result, started)

    @asynccontextmanager
    async def _hold_sub_units(
        self, result: SourceResult, held: tuple[ReportType, str]
    ) -> AsyncIterator[None]:
        """Hold the locks of every sub-unit key, taken in sorted order."""
        keys = {(unit.report_type, unit.subject_key) for unit in result.sub_units}
        async with AsyncExitStack() as stack:
            for key in sorted(keys - {held}):
                await stack.enter_async_context(self._locks.hold(key))
            yield

    async def _fetch(self, source: ReportSource, request: SourceRequest) -> SourceResult:
        context = FetchContext(
            poller=self._poller, config=self.config, lookup=self._latest, sleep=self.sleep
        )
        try:
            async with asyncio.timeout(self.config.acquire_timeout):
                return await source.fetch(request, context)
        except AcquisitionError:
            raise
        except (TimeoutError, httpx.TimeoutException) as exc:
            msg = f"{request.report_type} for {request.subject_key} timed out"
            raise UpstreamTimeoutError(msg) from exc
        except (httpx.HTTPError, SourceAPIError, ValidationError) as exc:
            msg = f"{request.report_type} for {request.subject_key} failed: {exc}"
            raise UpstreamUnavailableError(msg, last_error=exc) from exc

    def _store(
        self,
        source: ReportSource,
        request: SourceRequest,
        cache_type: ReportType,
        result: SourceResult,
        started: datetime,
    ) -> ReportSnapshot:
        now = utcnow()
        business_number = (
            request.subject.business_number if isinstance(request.subject, Organisation) else None
        )
        identifier = result.external_id or uuid4().hex
        document, extraction = to_document(
            result.payload, identifier=identifier, candidates=source.normalization
        )
        if extraction.empty:
            log.info(
                "%s: no records found in %s payload for %s",
                ErrorCode.NORMALIZATION_EMPTY,
                request.report_type,
                request.subject_key,
            )
        snapshot = ReportSnapshot(
            report_type=cache_type,
            subject_key=request.subject_key,
            document=document,
            business_number=business_number,
            external_id=identifier,
            search_label=result.search_label or search_label(request.subject),
            created_at=now,
            updated_at=now,
        )
        extra: list[ReportSnapshot] = []
        for unit in result.sub_units:
            unit_id = unit.external_id or unit.subject_key
            unit_document, _ = to_document(unit.payload, identifier=unit_id)
            extra.append(
                ReportSnapshot(
                    report_type=unit.report_type,
                    subject_key=unit.subject_key,
                    document=unit_document,
                    business_number=business_number,
                    external_id=unit_id,
                    search_label=unit.search_label,
                    created_at=now,
                    updated_at=now,
                )
            )

        try:
            with self.unit_of_work_factory() as uow:
                repository = uow.repositories.snapshots
                written = 0
                for unit_snapshot in extra:
                    stored = repository.latest(unit_snapshot.report_type, unit_snapshot.subject_key)
                    if stored is not None and stored.created_at >= started:
                        # written by a concurrent acquisition of that key during this fetch
                        log.debug(
                            "Keeping stored %s snapshot for %s",
                            unit_snapshot.report_type,
                            unit_snapshot.subject_key,
                        )
                        continue
                    repository.add(unit_snapshot)
                    written += 1
                repository.add(snapshot)
                uow.commit()
        except Exception:
            log.exception(
                "%s: could not store %s snapshot for %s, returning it unpersisted",
                ErrorCode.PERSISTENCE_FAILURE,
                cache_type,
                request.subject_key,
            )
            snapshot.id = None
            return snapshot

        log.info(
            "Stored %s snapshot %s for %s (%d records, %d sub-units)",
            cache_type,
            snapshot.id,
            request.subject_key,
            len(extraction.records),
            written,
        )
        return snapshot

    def _latest(self, report_type: ReportType, key: str) -> ReportSnapshot | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.snapshots.latest(report_type, key)

    def _cached(
        self, cache_type: ReportType, key: str, subject: Subject
    ) -> ReportSnapshot | None:
        with self.unit_of_work_factory() as uow:
            repository = uow.repositories.snapshots
            snapshot = repository.latest(cache_type, key)
            if (
                snapshot is None
                and cache_type is ReportType.LAND_TITLE_INDIVIDUAL
                and isinstance(subject, Individual)
                and subject.person_id is None
            ):
                snapshot = repository.latest_by_label(cache_type, search_label(subject))
            return snapshot
