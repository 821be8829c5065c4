"""Base classes for upstream report sources.

A source turns a :class:`SourceRequest` into a :class:`SourceResult`. Sources are
stateless; caching and persistence belong to the orchestrator. Each concrete source
declares the report types it serves, the request fields it cannot work without and
where its records live in the response.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar

from dossier.config.acquisition import AcquisitionConfig
from dossier.domain.errors import AcquisitionError, InvalidInputError, UpstreamUnavailableError

from .normalization import DEFAULT_CANDIDATES, rewrap
from .pagination import collect_all
from .polling import JobPoller

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from dossier.domain.model import (
        AsyncJob,
        Page,
        ReportOptions,
        ReportSnapshot,
        ReportType,
        Subject,
    )

log = getLogger(__name__)

type SnapshotLookup = Callable[[ReportType, str], ReportSnapshot | None]


def _no_lookup(report_type: ReportType, key: str) -> ReportSnapshot | None:  # noqa: ARG001
    return None


def required[T](value: T | None, what: str) -> T:
    if value is None:
        msg = f"{what} is required"
        raise InvalidInputError(msg)
    return value


def subject_as[S](request: SourceRequest, kind: type[S]) -> S:
    """The request subject, which this report type only serves as ``kind``."""
    subject = request.subject
    if not isinstance(subject, kind):
        msg = f"{request.report_type} needs a {kind.__name__.lower()} subject"
        raise InvalidInputError(msg)
    return subject


def all_failed(what: str, failures: list[Exception]) -> AcquisitionError:
    """Error to raise when every parallel part of a fetch failed."""
    first = failures[0]
    if isinstance(first, AcquisitionError):
        return first
    msg = f"every {what} failed: {first}"
    error = UpstreamUnavailableError(msg, last_error=first)
    error.__cause__ = first
    return error


@dataclass(frozen=True, slots=True)
class SourceRequest:
    subject: Subject
    report_type: ReportType
    options: ReportOptions
    subject_key: str


@dataclass(slots=True)
class SubUnit:
    """An extra snapshot written alongside the main one, e.g. one row per title reference."""

    report_type: ReportType
    subject_key: str
    payload: Any
    external_id: str | None = None
    search_label: str | None = None


@dataclass(slots=True)
class SourceResult:
    payload: Any
    external_id: str | None = None
    search_label: str | None = None
    sub_units: list[SubUnit] = field(default_factory=list)


@dataclass(slots=True)
class FetchContext:
    poller: JobPoller = field(default_factory=JobPoller)
    config: AcquisitionConfig = field(default_factory=AcquisitionConfig)
    lookup: SnapshotLookup = _no_lookup
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


class ReportSource(ABC):
    report_types: ClassVar[tuple[ReportType, ...]] = ()
    required_fields: ClassVar[tuple[str, ...]] = ()
    normalization: ClassVar[tuple[str, ...]] = DEFAULT_CANDIDATES
    paginated: ClassVar[bool] = False

    def validate(self, request: SourceRequest) -> None:
        """Reject requests missing a required field before anything goes on the wire."""
        for path in self.required_fields:
            value: Any = request
            for part in path.split("."):
                value = getattr(value, part, None)
                if value is None:
                    break
            if value is None or value in ("", ()):
                msg = f"{request.report_type} requires {path}"
                raise InvalidInputError(msg)

    @abstractmethod
    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult: ...


class SynchronousSource(ReportSource):
    """One request/response exchange."""

    @abstractmethod
    async def request(self, request: SourceRequest, context: FetchContext) -> SourceResult: ...

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        return await self.request(request, context)


class TwoPhaseSource(ReportSource):
    """Submit a job, wait, then retrieve the finished result."""

    @abstractmethod
    async def submit(self, request: SourceRequest, context: FetchContext) -> AsyncJob: ...

    @abstractmethod
    async def retrieve(self, job: AsyncJob) -> Any: ...

    def build_result(  # noqa: ARG002
        self, request: SourceRequest, job: AsyncJob, payload: Any
    ) -> SourceResult:
        return SourceResult(payload=payload, external_id=job.submission_id)

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        job = await self.submit(request, context)
        log.info("Submitted %s job %s", request.report_type, job.submission_id)
        payload = await context.poller.wait(job, self.retrieve)
        return self.build_result(request, job, payload)


class PaginatedSource(ReportSource):
    paginated = True
    records_path: ClassVar[str] = "records"

    @abstractmethod
    async def fetch_page(self, request: SourceRequest, page: int, page_size: int) -> Page: ...

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        records = await collect_all(
            partial(self.fetch_page, request),
            page_size=context.config.page_size,
            page_delay=context.config.page_delay,
            sleep=context.sleep,
        )
        return SourceResult(payload=rewrap(records, self.records_path))


class FanOutSource(ReportSource):
    """Independent branches combined into one document.

    A failing branch leaves its section ``None``. If every branch fails the first
    failure is raised.
    """

    @abstractmethod
    def branches(
        self, request: SourceRequest, context: FetchContext
    ) -> Mapping[str, Callable[[], Awaitable[Any]]]: ...

    def combine(  # noqa: ARG002
        self, request: SourceRequest, sections: dict[str, Any]
    ) -> SourceResult:
        return SourceResult(payload=sections)

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        branches = dict(self.branches(request, context))
        if not branches:
            msg = f"{request.report_type} has nothing to fetch for this request"
            raise InvalidInputError(msg)

        results = await asyncio.gather(
            *(branch() for branch in branches.values()), return_exceptions=True
        )
        sections: dict[str, Any] = {}
        failures: list[Exception] = []
        for name, result in zip(branches, results, strict=True):
            if isinstance(result, Exception):
                log.warning("%s branch %r failed: %s", request.report_type, name, result)
                failures.append(result)
                sections[name] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                sections[name] = result

        if len(failures) == len(branches):
            raise all_failed(f"{request.report_type} branch", failures)
        return self.combine(request, sections)
