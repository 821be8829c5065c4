from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dossier.domain.acquisition.sources import PaginatedSource, required
from dossier.domain.errors import InvalidInputError
from dossier.domain.model import Individual, Organisation, ReportType

from .client import IpAustraliaClient

if TYPE_CHECKING:
    from dossier.domain.acquisition.sources import SourceRequest
    from dossier.domain.model import Page


def owner_name(request: SourceRequest) -> str | None:
    match request.subject:
        case Organisation(name=name):
            return name
        case Individual() as individual:
            return individual.full_name


@dataclass
class TrademarkSource(PaginatedSource):
    report_types = (ReportType.TRADEMARK,)
    records_path = "trademarks"
    normalization = ("trademarks",)

    client: IpAustraliaClient = field(default_factory=IpAustraliaClient)

    def validate(self, request: SourceRequest) -> None:
        super().validate(request)
        if not owner_name(request):
            msg = f"{request.report_type} needs an owner name"
            raise InvalidInputError(msg)

    async def fetch_page(self, request: SourceRequest, page: int, page_size: int) -> Page:
        owner = required(owner_name(request), "owner name")
        return await self.client.search_owner(owner, page=page, page_size=page_size)
