from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dossier.adapters.globalx import TitleOrders
from dossier.domain.acquisition.sources import FanOutSource, SourceResult, required
from dossier.domain.model import ReportType

from .client import CoreLogicClient

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dossier.domain.acquisition.sources import FetchContext, SourceRequest


@dataclass
class PropertySource(FanOutSource):
    """Title order for an address, plus a CoreLogic valuation when requested.

    A failed valuation leaves ``cotality`` empty without losing the title.
    """

    report_types = (ReportType.PROPERTY, ReportType.DIRECTOR_PROPERTY)
    required_fields = ("options.address",)
    normalization = ("titleOrder",)

    orders: TitleOrders = field(default_factory=TitleOrders)
    client: CoreLogicClient = field(default_factory=CoreLogicClient)

    def branches(
        self, request: SourceRequest, context: FetchContext
    ) -> dict[str, Callable[[], Awaitable[Any]]]:
        address = required(request.options.address, "address")

        async def title_order() -> Any:
            _, payload = await self.orders.title_for_address(address, context)
            return payload

        branches: dict[str, Callable[[], Awaitable[Any]]] = {"titleOrder": title_order}
        if request.options.include_valuation:
            branches["cotality"] = lambda: self.client.valuation(address.display())
        return branches

    def combine(self, request: SourceRequest, sections: dict[str, Any]) -> SourceResult:
        address = request.options.address
        return SourceResult(
            payload={
                "cotality": sections.get("cotality"),
                "titleOrder": sections.get("titleOrder"),
            },
            search_label=address.display() if address else None,
        )
