"""HTTP client for GlobalX locator and title orders.

Both order kinds are asynchronous upstream: a POST creates the order and the
result is fetched from ``<kind>/<order identifier>`` once it has been filled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

import httpx

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_globalx_config
from dossier.domain.acquisition.retry import ResultNotReadyError
from dossier.domain.errors import SourceAPIError

from .schema import OrderCreated

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig
    from dossier.domain.model import Address, TitleReference

log = getLogger(__name__)

type OrderKind = Literal["locator-orders", "title-orders"]

PENDING_STATUSES = frozenset({"pending", "inprogress", "in progress", "submitted"})


class GlobalXAPIError(SourceAPIError):
    """Raised when an order is accepted without an order identifier."""


def address_criteria(address: Address) -> dict[str, Any]:
    return {
        "Jurisdiction": address.state,
        "Location": {
            "StructuredAddress": {
                "Unit": address.unit_number or "",
                "StreetNumber": address.street_number or "",
                "StreetName": address.street_name or "",
                "City": address.locality or "",
                "State": address.state or "",
                "PostCode": address.postcode or "",
            }
        },
    }


def organisation_owner_criteria(name: str, state: str) -> dict[str, Any]:
    return {"Jurisdiction": state, "Owner": {"Organisation": {"Name": name}}}


def individual_owner_criteria(given_name: str, family_name: str, state: str) -> dict[str, Any]:
    return {
        "Jurisdiction": state,
        "Owner": {"Individual": {"FirstName": given_name or "", "LastName": family_name}},
    }


def title_criteria(reference: TitleReference) -> dict[str, Any]:
    return {
        "Jurisdiction": reference.jurisdiction.upper(),
        "TitleReference": reference.reference,
        "DontUseCachingProduct": True,
    }


def _order_pending(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    status = payload.get("OrderStatus") or payload.get("Status")
    return isinstance(status, str) and status.lower() in PENDING_STATUSES


@dataclass(slots=True)
class GlobalXClient:
    config: UpstreamConfig = field(default_factory=get_globalx_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    @property
    def order_reference(self) -> str:
        return self.config.options.get("order_reference", "Dossier")

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def create_order(self, kind: OrderKind, criteria: Mapping[str, Any]) -> str:
        body = {
            "OrderRequestBlock": {"OrderReference": self.order_reference},
            "ServiceRequestBlock": dict(criteria),
        }
        async with self._client() as client:
            response = await client.post(f"/{kind}", json=body)
        response.raise_for_status()
        identifier = OrderCreated.model_validate(response.json()).result.order_identifier
        if not identifier:
            msg = f"No order identifier returned from GlobalX {kind}"
            raise GlobalXAPIError(msg)
        log.info("Created GlobalX %s %s", kind, identifier)
        return identifier

    async def get_order(self, kind: OrderKind, order_id: str) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.get(f"/{kind}/{order_id}")
        response.raise_for_status()
        payload = response.json()
        if _order_pending(payload):
            msg = f"GlobalX {kind} {order_id} is not filled yet"
            raise ResultNotReadyError(msg)
        if not isinstance(payload, dict):
            msg = f"Unexpected GlobalX {kind} payload"
            raise GlobalXAPIError(msg)
        return payload
