"""Two-phase ASIC report sources backed by Alares."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dossier.domain.acquisition.sources import TwoPhaseSource, subject_as
from dossier.domain.errors import InvalidInputError
from dossier.domain.model import AsyncJob, Individual, Organisation, ReportType

from .client import AlaresClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import FetchContext, SourceRequest

REPORT_SECTIONS: dict[ReportType, tuple[str, ...]] = {
    ReportType.ASIC_CURRENT: ("asic_current",),
    ReportType.COURT: ("asic_current",),
    ReportType.ATO: ("asic_current",),
    ReportType.ASIC_HISTORICAL: ("asic_historical",),
    ReportType.ASIC_COMPANY: ("asic_relational",),
}


def _report_job(report_id: str, context: FetchContext) -> AsyncJob:
    delay = context.config.report_result_delay
    return AsyncJob(
        submission_id=report_id,
        poll_url=f"/reports/{report_id}/json",
        poll_interval=delay,
        timeout=context.config.phase_timeout(delay),
        max_attempts=context.config.retry.max_attempts,
    )


@dataclass
class AsicReportSource(TwoPhaseSource):
    """Company extracts: current (shared with court and tax), historical and relational."""

    report_types = tuple(REPORT_SECTIONS)
    required_fields = ("subject.business_number",)

    client: AlaresClient = field(default_factory=AlaresClient)

    async def submit(self, request: SourceRequest, context: FetchContext) -> AsyncJob:
        subject = subject_as(request, Organisation)
        report_id = await self.client.create_company_report(
            subject.business_number, sections=REPORT_SECTIONS[request.report_type]
        )
        return _report_job(report_id, context)

    async def retrieve(self, job: AsyncJob) -> Any:
        return await self.client.report_json(job.submission_id)


@dataclass
class DirectorRelatedSource(TwoPhaseSource):
    """Entities related to an individual, resolved through the ASIC person search."""

    report_types = (ReportType.DIRECTOR_RELATED,)
    required_fields = ("subject.family_name",)

    client: AlaresClient = field(default_factory=AlaresClient)

    async def submit(self, request: SourceRequest, context: FetchContext) -> AsyncJob:
        subject = subject_as(request, Individual)
        person_id = subject.person_id
        search_id: str | None = None
        if person_id is None:
            matches = await self.client.person_search(
                last_name=subject.family_name,
                first_name=subject.given_name or None,
                dob_from=subject.date_of_birth,
                dob_to=subject.date_of_birth,
            )
            if not matches:
                msg = f"no ASIC person matches {subject.full_name}"
                raise InvalidInputError(msg)
            person_id = matches[0].person_id
            search_id = matches[0].search_id

        report_id = await self.client.create_individual_report(
            name=subject.full_name,
            person_id=person_id,
            date_of_birth=subject.date_of_birth,
            search_id=search_id,
        )
        return _report_job(report_id, context)

    async def retrieve(self, job: AsyncJob) -> Any:
        return await self.client.report_json(job.submission_id)
