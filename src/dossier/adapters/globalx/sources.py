"""Land title sources: title orders, address locators and per-state owner searches."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from dossier.domain.acquisition.sources import (
    ReportSource,
    SourceResult,
    SubUnit,
    all_failed,
    required,
)
from dossier.domain.errors import InvalidInputError
from dossier.domain.model import AsyncJob, Individual, Organisation, ReportType, TitleReference

from .client import (
    GlobalXClient,
    OrderKind,
    address_criteria,
    individual_owner_criteria,
    organisation_owner_criteria,
    title_criteria,
)
from .schema import LocatorResult, located_address

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dossier.adapters.abr import AbrClient
    from dossier.domain.acquisition.sources import FetchContext, SourceRequest
    from dossier.domain.model import Address

log = getLogger(__name__)

JURISDICTIONS = ("NSW", "VIC", "QLD", "SA", "WA", "TAS", "NT", "ACT")


class PropertyValuer(Protocol):
    async def valuation(self, address: str) -> dict[str, Any]: ...


def title_document(title_order: Any, cotality: Any = None) -> dict[str, Any]:
    return {"cotality": cotality, "titleOrder": title_order}


async def value_titled_property(
    valuer: PropertyValuer | None, request: SourceRequest, title_order: Any
) -> dict[str, Any] | None:
    """Valuation add-on for the property on a title order. Failures only cost the add-on."""
    if valuer is None or not request.options.include_valuation:
        return None
    address = located_address(title_order)
    if address is None:
        log.info("Title order carries no address, skipping valuation")
        return None
    try:
        return await valuer.valuation(address)
    except Exception:
        log.warning("Valuation of %r failed", address, exc_info=True)
        return None


@dataclass(slots=True)
class TitleOrders:
    """Places GlobalX orders and waits them out through the job poller."""

    client: GlobalXClient = field(default_factory=GlobalXClient)

    async def _place(
        self, kind: OrderKind, criteria: Mapping[str, Any], context: FetchContext
    ) -> tuple[str, dict[str, Any]]:
        order_id = await self.client.create_order(kind, criteria)
        delay = context.config.order_result_delay
        job = AsyncJob(
            submission_id=order_id,
            poll_url=f"/{kind}/{order_id}",
            poll_interval=delay,
            timeout=context.config.phase_timeout(delay),
            max_attempts=context.config.retry.max_attempts,
        )
        payload = await context.poller.wait(
            job, lambda placed: self.client.get_order(kind, placed.submission_id)
        )
        return order_id, payload

    async def locate(
        self, criteria: Mapping[str, Any], context: FetchContext
    ) -> LocatorResult:
        _, payload = await self._place("locator-orders", criteria, context)
        return LocatorResult.model_validate(payload)

    async def title(
        self, reference: TitleReference, context: FetchContext
    ) -> tuple[str | None, Any]:
        """Title order for ``reference``, reusing a stored one when available.

        Returns the order identifier (``None`` when reused) and the order payload.
        """
        cached = context.lookup(ReportType.LAND_TITLE_REFERENCE, reference.key)
        if cached is not None and cached.document.get("titleOrder") is not None:
            log.info("Reusing stored title order for %s", reference.key)
            return None, cached.document["titleOrder"]
        return await self._place("title-orders", title_criteria(reference), context)

    async def title_for_address(
        self, address: Address, context: FetchContext
    ) -> tuple[str | None, Any]:
        if not address.state:
            msg = "address searches need a state"
            raise InvalidInputError(msg)
        located = await self.locate(address_criteria(address), context)
        references = located.title_references(address.state)
        if not references:
            msg = f"no title found at {address.display()}"
            raise InvalidInputError(msg)
        return await self.title(references[0], context)


@dataclass
class LandTitleReferenceSource(ReportSource):
    report_types = (ReportType.LAND_TITLE_REFERENCE,)
    required_fields = ("options.title_reference", "options.jurisdiction")

    orders: TitleOrders = field(default_factory=TitleOrders)
    valuer: PropertyValuer | None = None

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        options = request.options
        reference = TitleReference(
            required(options.title_reference, "title reference"),
            required(options.jurisdiction, "jurisdiction"),
        )
        order_id, title_order = await self.orders.title(reference, context)
        cotality = await value_titled_property(self.valuer, request, title_order)
        return SourceResult(
            payload=title_document(title_order, cotality),
            external_id=order_id,
            search_label=reference.reference,
        )


@dataclass
class LandTitleAddressSource(ReportSource):
    report_types = (ReportType.LAND_TITLE_ADDRESS,)
    required_fields = ("options.address",)

    orders: TitleOrders = field(default_factory=TitleOrders)
    valuer: PropertyValuer | None = None

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        address = required(request.options.address, "address")
        order_id, title_order = await self.orders.title_for_address(address, context)
        cotality = await value_titled_property(self.valuer, request, title_order)
        return SourceResult(
            payload=title_document(title_order, cotality),
            external_id=order_id,
            search_label=address.display(),
        )


@dataclass
class LandTitleOwnerSource(ReportSource):
    """Every title an organisation or individual owns across the selected states.

    Owner locator searches run per state; each title reference found is then
    ordered, reusing stored reference snapshots. Alongside the summary document
    each ordered title is stored as its own ``land-title-reference`` snapshot.
    A title order that fails keeps its entry with ``titleOrder`` set to ``None``;
    when every order fails the search fails.
    """

    report_types = (ReportType.LAND_TITLE_ORGANISATION, ReportType.LAND_TITLE_INDIVIDUAL)
    normalization = ("titleOrders",)

    orders: TitleOrders = field(default_factory=TitleOrders)
    registry: AbrClient | None = None
    valuer: PropertyValuer | None = None

    async def owner_name(self, subject: Organisation | Individual) -> str:
        match subject:
            case Individual():
                return subject.full_name
            case Organisation(name=str(name)) if name:
                return name
            case Organisation(business_number=business_number):
                if self.registry is None:
                    return business_number
                details = await self.registry.abn_details(business_number)
                return details.entity_name or business_number

    def _criteria(
        self, subject: Organisation | Individual, name: str, state: str
    ) -> dict[str, Any]:
        if isinstance(subject, Individual):
            return individual_owner_criteria(subject.given_name, subject.family_name, state)
        return organisation_owner_criteria(name, state)

    async def _locate_all(
        self, request: SourceRequest, name: str, context: FetchContext
    ) -> tuple[list[TitleReference], dict[str, Any]]:
        subject = request.subject
        states = request.options.states or JURISDICTIONS
        results = await asyncio.gather(
            *(
                self.orders.locate(self._criteria(subject, name, state), context)
                for state in states
            ),
            return_exceptions=True,
        )
        references: list[TitleReference] = []
        located: dict[str, Any] = {}
        failures: list[Exception] = []
        for state, result in zip(states, results, strict=True):
            if isinstance(result, Exception):
                log.warning("Owner search for %r in %s failed: %s", name, state, result)
                failures.append(result)
                located[state] = None
                continue
            if isinstance(result, BaseException):
                raise result
            found = result.title_references(state)
            located[state] = [
                {"titleReference": ref.reference, "jurisdiction": ref.jurisdiction}
                for ref in found
            ]
            references.extend(found)
        if failures and len(failures) == len(states):
            raise failures[0]
        return references, located

    async def fetch(self, request: SourceRequest, context: FetchContext) -> SourceResult:
        name = await self.owner_name(request.subject)

        located: dict[str, Any] = {}
        if request.options.title_references:
            references = list(dict.fromkeys(request.options.title_references))
        else:
            references, located = await self._locate_all(request, name, context)
            references = list(dict.fromkeys(references))

        wanted = [] if request.options.detail == "PAST" else references
        ordered = await asyncio.gather(
            *(self.orders.title(reference, context) for reference in wanted),
            return_exceptions=True,
        )

        title_orders: list[dict[str, Any]] = []
        valuations: list[dict[str, Any]] = []
        sub_units: list[SubUnit] = []
        failures: list[Exception] = []
        for reference, result in zip(wanted, ordered, strict=True):
            entry: dict[str, Any] = {
                "titleReference": reference.reference,
                "jurisdiction": reference.jurisdiction,
                "orderId": None,
                "titleOrder": None,
            }
            title_orders.append(entry)
            if isinstance(result, Exception):
                log.warning("Title order for %s failed: %s", reference.key, result)
                failures.append(result)
                continue
            if isinstance(result, BaseException):
                raise result
            order_id, title_order = result
            entry["orderId"] = order_id
            entry["titleOrder"] = title_order
            cotality = await value_titled_property(self.valuer, request, title_order)
            if cotality is not None:
                valuations.append(cotality)
            if order_id is not None:
                sub_units.append(
                    SubUnit(
                        report_type=ReportType.LAND_TITLE_REFERENCE,
                        subject_key=reference.key,
                        payload=title_document(title_order, cotality),
                        external_id=order_id,
                        search_label=name or reference.reference,
                    )
                )

        if failures and len(failures) == len(wanted):
            raise all_failed("title order", failures)

        payload = {
            "currentCount": len(references),
            "historicalCount": 0,
            "allCount": len(references),
            "titleOrders": title_orders,
            "cotality": valuations or None,
            "storedLocatorData": located,
            "companyName": name,
        }
        return SourceResult(payload=payload, search_label=name, sub_units=sub_units)
