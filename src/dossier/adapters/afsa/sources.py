from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dossier.domain.acquisition.sources import SourceResult, SynchronousSource, subject_as
from dossier.domain.model import Individual, ReportType

from .client import AfsaClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import FetchContext, SourceRequest


@dataclass
class DirectorBankruptcySource(SynchronousSource):
    report_types = (ReportType.DIRECTOR_BANKRUPTCY,)
    required_fields = ("subject.family_name",)
    normalization = ("insolvencies",)

    client: AfsaClient = field(default_factory=AfsaClient)

    async def request(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        subject = subject_as(request, Individual)
        result = await self.client.search_by_name(
            subject.family_name,
            given_name=subject.given_name,
            date_of_birth=subject.date_of_birth,
        )
        return SourceResult(
            payload=result.model_dump(mode="json", by_alias=True),
            external_id=result.insolvency_search_id,
        )
