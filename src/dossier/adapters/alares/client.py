"""HTTP client for the Alares ASIC reporting API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_alares_config
from dossier.domain.acquisition.retry import ResultNotReadyError
from dossier.domain.errors import SourceAPIError

from .schema import (
    PersonMatch,
    ReportCreated,
    WatchlistEntitiesResponse,
    WatchlistEntityPayload,
    report_pending,
)

if TYPE_CHECKING:
    from datetime import date

    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

CREATE_REPORT_PATH = "/reports/create"
PERSON_SEARCH_PATH = "/asic/search"


class AlaresAPIError(SourceAPIError):
    """Raised when Alares rejects a request or returns an unexpected payload."""


def format_dob(value: date) -> str:
    return value.strftime("%d-%m-%Y")


@dataclass(slots=True)
class AlaresClient:
    config: UpstreamConfig = field(default_factory=get_alares_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def create_company_report(
        self, business_number: str, *, sections: tuple[str, ...]
    ) -> str:
        params = {"type": "company", "abn": business_number}
        params.update(dict.fromkeys(sections, "1"))
        return await self._create(params)

    async def create_individual_report(
        self,
        *,
        name: str,
        person_id: str,
        date_of_birth: date | None = None,
        search_id: str | None = None,
    ) -> str:
        params = {"type": "individual", "name": name, "asic_current": "1", "person_id": person_id}
        if date_of_birth is not None:
            params["dob"] = format_dob(date_of_birth)
        if search_id:
            params["acs_search_id"] = search_id
        return await self._create(params)

    async def report_json(self, report_id: str) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.get(f"/reports/{report_id}/json")
        response.raise_for_status()
        payload = response.json()
        if report_pending(payload):
            msg = f"Alares report {report_id} is still being prepared"
            raise ResultNotReadyError(msg)
        if not isinstance(payload, dict):
            msg = "Unexpected Alares report payload"
            raise AlaresAPIError(msg)
        return payload

    async def person_search(
        self,
        *,
        last_name: str,
        first_name: str | None = None,
        dob_from: date | None = None,
        dob_to: date | None = None,
    ) -> list[PersonMatch]:
        params = {"last_name": last_name}
        if first_name:
            params["first_name"] = first_name
        if dob_from is not None:
            params["dob_from"] = format_dob(dob_from)
        if dob_to is not None:
            params["dob_to"] = format_dob(dob_to)
        async with self._client() as client:
            response = await client.get(
                PERSON_SEARCH_PATH, params=params, headers={"Accept": "application/json"}
            )
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("results", [])
        if not isinstance(payload, list):
            msg = "Unexpected Alares person search payload"
            raise AlaresAPIError(msg)
        return [PersonMatch.model_validate(item) for item in payload]

    async def watchlist_entities(self, watchlist_id: str) -> list[WatchlistEntityPayload]:
        async with self._client() as client:
            response = await client.get(
                f"/watchlists/{watchlist_id}/entities", headers={"Accept": "application/json"}
            )
        response.raise_for_status()
        return WatchlistEntitiesResponse.model_validate(response.json()).data

    async def _create(self, params: dict[str, str]) -> str:
        async with self._client() as client:
            response = await client.post(CREATE_REPORT_PATH, params=params)
        if response.status_code in {400, 422}:
            msg = f"Alares refused report request: {response.text}"
            raise AlaresAPIError(msg, status_code=response.status_code)
        response.raise_for_status()
        created = ReportCreated.model_validate(response.json())
        log.info("Created Alares %s report %s", params.get("type"), created.uuid)
        return created.uuid
