from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest

from dossier.domain.acquisition import (
    FanOutSource,
    FetchContext,
    JobPoller,
    PaginatedSource,
    SourceRequest,
    TwoPhaseSource,
    required,
    subject_as,
)
from dossier.domain.errors import InvalidInputError, SourceAPIError, UpstreamUnavailableError
from dossier.domain.model import (
    AsyncJob,
    Individual,
    Organisation,
    Page,
    ReportOptions,
    ReportType,
)
from tests.helpers.http import RecordingSleep

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


def _request(
    subject: Organisation | Individual | None = None,
    report_type: ReportType = ReportType.DIRECTOR_COURT,
    options: ReportOptions | None = None,
) -> SourceRequest:
    return SourceRequest(
        subject=subject or Individual("Jane", "Citizen"),
        report_type=report_type,
        options=options or ReportOptions(),
        subject_key="citizen|jane|",
    )


@dataclass
class SplitSource(FanOutSource):
    report_types = (ReportType.DIRECTOR_COURT,)

    failing: set[str] = field(default_factory=set)

    def branches(
        self, request: SourceRequest, context: FetchContext
    ) -> dict[str, Callable[[], Awaitable[Any]]]:
        return {name: self._branch(name) for name in ("criminal_court", "civil_court")}

    def _branch(self, name: str) -> Callable[[], Awaitable[Any]]:
        async def run() -> Any:
            if name in self.failing:
                raise SourceAPIError(f"{name} unavailable", status_code=503)
            return {"records": [name]}

        return run


def test_fan_out_keeps_successful_sections_when_one_fails() -> None:
    source = SplitSource(failing={"civil_court"})

    result = asyncio.run(source.fetch(_request(), FetchContext()))

    assert result.payload == {
        "criminal_court": {"records": ["criminal_court"]},
        "civil_court": None,
    }


def test_fan_out_raises_when_every_branch_fails() -> None:
    source = SplitSource(failing={"civil_court", "criminal_court"})

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(source.fetch(_request(), FetchContext()))

    assert isinstance(excinfo.value.last_error, SourceAPIError)


def test_subject_and_option_narrowing_raise_invalid_input() -> None:
    request = _request(Organisation("51824753556"))

    assert subject_as(request, Organisation).business_number == "51824753556"
    with pytest.raises(InvalidInputError, match="individual subject"):
        subject_as(request, Individual)
    with pytest.raises(InvalidInputError, match="address is required"):
        required(request.options.address, "address")


@dataclass
class RequiresDob(TwoPhaseSource):
    report_types = (ReportType.DIRECTOR_PPSR,)
    required_fields = ("subject.family_name", "subject.date_of_birth")

    retrieved: list[str] = field(default_factory=list)

    async def submit(self, request: SourceRequest, context: FetchContext) -> AsyncJob:
        return AsyncJob(submission_id="search-9", poll_url="/results", poll_interval=3, timeout=33)

    async def retrieve(self, job: AsyncJob) -> Any:
        self.retrieved.append(job.submission_id)
        return {"resource": {"results": [1, 2]}}


def test_validate_rejects_missing_required_fields() -> None:
    with pytest.raises(InvalidInputError, match="subject.date_of_birth"):
        RequiresDob().validate(_request(report_type=ReportType.DIRECTOR_PPSR))


def test_two_phase_source_submits_waits_and_retrieves() -> None:
    sleep = RecordingSleep()
    source = RequiresDob()

    result = asyncio.run(
        source.fetch(
            _request(report_type=ReportType.DIRECTOR_PPSR),
            FetchContext(poller=JobPoller(sleep=sleep), sleep=sleep),
        )
    )

    assert result.payload == {"resource": {"results": [1, 2]}}
    assert result.external_id == "search-9"
    assert source.retrieved == ["search-9"]
    assert sleep.delays == [3]


@dataclass
class NumberedRecords(PaginatedSource):
    report_types = (ReportType.UNCLAIMED_MONEY,)
    records_path = "data.records"

    total: int = 45
    pages: list[int] = field(default_factory=list)

    async def fetch_page(self, request: SourceRequest, page: int, page_size: int) -> Page:
        self.pages.append(page)
        start = (page - 1) * page_size
        return Page(records=list(range(self.total))[start : start + page_size])


def test_paginated_source_rewraps_all_records() -> None:
    source = NumberedRecords()
    sleep = RecordingSleep()

    result = asyncio.run(
        source.fetch(_request(Organisation("51824753556")), FetchContext(sleep=sleep))
    )

    assert result.payload == {"data": {"records": list(range(45))}}
    assert source.pages == [1, 2, 3]
    assert sleep.delays == [0.5, 0.5]
