"""HTTP client for the AFSA bankruptcy register search."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_afsa_config

from .schema import BankruptcySearchResult

if TYPE_CHECKING:
    from datetime import date

    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

SEARCH_BY_NAME_PATH = "/brs/api/v2/search-by-name"


@dataclass(slots=True)
class AfsaClient:
    config: UpstreamConfig = field(default_factory=get_afsa_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def search_by_name(
        self,
        surname: str,
        *,
        given_name: str | None = None,
        date_of_birth: date | None = None,
    ) -> BankruptcySearchResult:
        params = {"debtorSurname": surname.strip()}
        if given_name and given_name.strip():
            params["debtorGivenName"] = given_name.strip()
        if date_of_birth is not None:
            params["debtorDateOfBirth"] = date_of_birth.isoformat()
        async with self._client() as client:
            response = await client.get(
                SEARCH_BY_NAME_PATH, params=params, headers={"Accept": "application/json"}
            )
        response.raise_for_status()
        result = BankruptcySearchResult.model_validate(response.json())
        log.info("Bankruptcy search for %s returned %d matches", surname, result.count)
        return result
