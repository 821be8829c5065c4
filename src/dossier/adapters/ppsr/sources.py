"""Two-phase PPSR searches: submit, short fixed wait, fetch result details."""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dossier.domain.acquisition.normalization import DEFAULT_CANDIDATES
from dossier.domain.acquisition.sources import TwoPhaseSource, required, subject_as
from dossier.domain.model import AsyncJob, Individual, Organisation, ReportType

from .client import RESULT_DETAILS_PATH, PpsrClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import FetchContext, SourceRequest


@dataclass
class _PpsrSearchSource(TwoPhaseSource):
    normalization = ("resource.results", *DEFAULT_CANDIDATES)
    serial_search = False

    client: PpsrClient = field(default_factory=PpsrClient)

    @abstractmethod
    def criteria(self, request: SourceRequest) -> dict[str, Any]: ...

    async def submit(self, request: SourceRequest, context: FetchContext) -> AsyncJob:
        criteria = self.criteria(request)
        if self.serial_search:
            identifier = await self.client.submit_serial_search(criteria)
        else:
            identifier = await self.client.submit_grantor_search(criteria)
        delay = context.config.ppsr_result_delay
        return AsyncJob(
            submission_id=identifier,
            poll_url=RESULT_DETAILS_PATH,
            poll_interval=delay,
            timeout=context.config.phase_timeout(delay),
            max_attempts=context.config.retry.max_attempts,
        )

    async def retrieve(self, job: AsyncJob) -> Any:
        return await self.client.result_details(job.submission_id)


@dataclass
class PpsrOrganisationSource(_PpsrSearchSource):
    """Security interests registered against a company, searched by its ACN."""

    report_types = (ReportType.PPSR,)
    required_fields = ("subject.company_number",)

    def criteria(self, request: SourceRequest) -> dict[str, Any]:
        subject = subject_as(request, Organisation)
        return {
            "grantorType": "organisation",
            "organisationNumberType": "acn",
            "organisationNumber": subject.company_number,
        }


@dataclass
class PpsrIndividualSource(_PpsrSearchSource):
    report_types = (ReportType.DIRECTOR_PPSR,)
    required_fields = ("subject.family_name", "subject.given_name", "subject.date_of_birth")

    def criteria(self, request: SourceRequest) -> dict[str, Any]:
        subject = subject_as(request, Individual)
        date_of_birth = required(subject.date_of_birth, "date of birth")
        return {
            "grantorType": "individual",
            "individualDateOfBirth": date_of_birth.isoformat(),
            "individualFamilyName": subject.family_name,
            "individualGivenNames": subject.given_name,
            "acceptIndividualGrantorSearchDeclaration": True,
        }


@dataclass
class PpsrVehicleSource(_PpsrSearchSource):
    report_types = (ReportType.VEHICLE_PPSR,)
    required_fields = ("options.serial_number",)
    serial_search = True

    def criteria(self, request: SourceRequest) -> dict[str, Any]:
        return {"serialNumberType": "VIN", "serialNumber": request.subject_key}
