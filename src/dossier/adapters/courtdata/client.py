"""HTTP client for CourtData civil and criminal record searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

import httpx

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_courtdata_config

if TYPE_CHECKING:
    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

type CourtKind = Literal["civil", "criminal"]


def court_fullname(given_name: str, family_name: str) -> str:
    """Name in the register's ``FAMILY, Given`` form."""
    family = family_name.strip().upper()
    given = given_name.strip()
    return f"{family}, {given}" if given else family


@dataclass(slots=True)
class CourtDataClient:
    config: UpstreamConfig = field(default_factory=get_courtdata_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    @property
    def default_state(self) -> str:
        return self.config.options.get("state", "NSW")

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def search(self, kind: CourtKind, *, fullname: str, state: str) -> Any:
        params = {"state": state, "fullname": fullname}
        async with self._client() as client:
            response = await client.get(f"/search/{kind}/record", params=params)
        response.raise_for_status()
        log.debug("CourtData %s search for %r in %s done", kind, fullname, state)
        return response.json()
