"""HTTP client for the unclaimed money register."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_unclaimed_money_config
from dossier.domain.model import Page

if TYPE_CHECKING:
    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

SEARCH_PATH = "/search"


class UnclaimedSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    results: list[Any] = Field(default_factory=list)
    total: int | None = Field(default=None, alias="totalResults")


@dataclass(slots=True)
class UnclaimedMoneyClient:
    config: UpstreamConfig = field(default_factory=get_unclaimed_money_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def search(self, name: str, *, page: int, page_size: int) -> Page:
        params = {"name": name, "page": str(page), "pageSize": str(page_size)}
        async with self._client() as client:
            response = await client.get(SEARCH_PATH, params=params)
        response.raise_for_status()
        result = UnclaimedSearchResponse.model_validate(response.json())
        return Page(records=result.results, total=result.total)
