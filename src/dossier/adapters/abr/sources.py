from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dossier.domain.acquisition.sources import SourceResult, SynchronousSource, subject_as
from dossier.domain.model import Individual, ReportType

from .client import AbrClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import FetchContext, SourceRequest


def _same_person(record_given: str | None, record_family: str | None, subject: Individual) -> bool:
    family = (record_family or "").casefold()
    given = (record_given or "").casefold()
    return family == subject.family_name.strip().casefold() and given.startswith(
        subject.given_name.strip().casefold()
    )


@dataclass
class SoleTraderCheckSource(SynchronousSource):
    """Whether an individual trades under their own business number."""

    report_types = (ReportType.SOLE_TRADER_CHECK,)
    required_fields = ("subject.given_name", "subject.family_name")
    normalization = ("records",)

    client: AbrClient = field(default_factory=AbrClient)

    async def request(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        subject = subject_as(request, Individual)
        postcode = request.options.address.postcode if request.options.address else None
        records = await self.client.individual_name_search(
            subject.given_name, subject.family_name, postcode=postcode
        )
        matches = [
            record.model_dump(mode="json")
            for record in records
            if _same_person(record.given_name, record.family_name, subject)
        ]
        return SourceResult(
            payload={
                "soleTrader": bool(matches),
                "records": matches,
                "searchedName": subject.full_name,
            }
        )
