"""HTTP client for CoreLogic property matching and property details."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_corelogic_config
from dossier.domain.errors import InvalidInputError

if TYPE_CHECKING:
    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

ADDRESS_MATCHER_PATH = "/search/au/matcher/address"
PROPERTY_DETAILS_PATH = "/property-details/au/properties/{property_id}"


class MatchDetails(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    property_id: str | None = Field(default=None, alias="propertyId")


class AddressMatch(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    match_details: MatchDetails | None = Field(default=None, alias="matchDetails")


@dataclass(slots=True)
class CoreLogicClient:
    config: UpstreamConfig = field(default_factory=get_corelogic_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        async with self._client() as client:
            response = await client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def match_address(self, address: str) -> MatchDetails | None:
        payload = await self._get(ADDRESS_MATCHER_PATH, {"q": address})
        return AddressMatch.model_validate(payload).match_details

    async def sales_history(self, property_id: str) -> Any:
        path = f"{PROPERTY_DETAILS_PATH.format(property_id=property_id)}/sales"
        return await self._get(path, {"includeHistoric": "false"})

    async def core_attributes(self, property_id: str) -> Any:
        path = f"{PROPERTY_DETAILS_PATH.format(property_id=property_id)}/attributes/core"
        return await self._get(path, {"includeHistoric": "false"})

    async def valuation(self, address: str) -> dict[str, Any]:
        """Matched property with its sales history and core attributes."""
        if not address.strip():
            msg = "a valuation needs an address"
            raise InvalidInputError(msg)
        details = await self.match_address(address)
        if details is None or not details.property_id:
            msg = f"CoreLogic could not match {address!r} to a property"
            raise InvalidInputError(msg)

        property_id = details.property_id
        log.info("Matched %r to CoreLogic property %s", address, property_id)
        sales, attributes = await asyncio.gather(
            self.sales_history(property_id), self.core_attributes(property_id)
        )
        return {
            "propertyId": property_id,
            "matchDetails": details.model_dump(mode="json", by_alias=True),
            "salesHistory": sales,
            "propertyData": attributes,
        }
