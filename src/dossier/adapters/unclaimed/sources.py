from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dossier.domain.acquisition.sources import PaginatedSource
from dossier.domain.model import Individual, Organisation, ReportType

from .client import UnclaimedMoneyClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import SourceRequest
    from dossier.domain.model import Page


def claimant_name(request: SourceRequest) -> str:
    match request.subject:
        case Organisation(business_number=business_number, name=name):
            return name or business_number
        case Individual() as individual:
            return individual.full_name


@dataclass
class UnclaimedMoneySource(PaginatedSource):
    """Unclaimed money lodged under an organisation's or individual's name."""

    report_types = (ReportType.UNCLAIMED_MONEY,)
    records_path = "records"
    normalization = ("records",)

    client: UnclaimedMoneyClient = field(default_factory=UnclaimedMoneyClient)

    async def fetch_page(self, request: SourceRequest, page: int, page_size: int) -> Page:
        return await self.client.search(
            claimant_name(request), page=page, page_size=page_size
        )
