"""HTTP client for the IP Australia trade mark search API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_ipaustralia_config
from dossier.domain.model import Page

if TYPE_CHECKING:
    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

QUICK_SEARCH_PATH = "/search/quick"


class TrademarkSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    count: int | None = None
    trademarks: list[Any] = Field(default_factory=list, alias="trademarkIds")


@dataclass(slots=True)
class IpAustraliaClient:
    config: UpstreamConfig = field(default_factory=get_ipaustralia_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def search_owner(self, owner: str, *, page: int, page_size: int) -> Page:
        """One page of trade marks whose owner matches ``owner``. Pages start at 1."""
        body = {
            "query": owner,
            "filters": {"quickSearchType": ["OWNER"]},
            "pageNumber": page - 1,
            "pageSize": page_size,
        }
        async with self._client() as client:
            response = await client.post(QUICK_SEARCH_PATH, json=body)
        response.raise_for_status()
        result = TrademarkSearchResponse.model_validate(response.json())
        log.debug("Trade mark page %d for %r: %d records", page, owner, len(result.trademarks))
        return Page(records=result.trademarks, total=result.count)
