"""HTTP client for PPSR Cloud searches of the Personal Property Securities Register."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import httpx

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_ppsr_config
from dossier.domain.errors import SourceAPIError

from .schema import SubmitResponse

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

GRANTOR_SEARCH_PATH = "/api/b2b/ausearch/submit-grantor-session-cmd"
SERIAL_SEARCH_PATH = "/api/b2b/ausearch/submit-serial-number-session-cmd"
RESULT_DETAILS_PATH = "/api/b2b/ausearch/result-details"
RESULT_PAGE_SIZE = 50


class PpsrAPIError(SourceAPIError):
    """Raised when PPSR Cloud accepts a search but returns no search identifier."""


@dataclass(slots=True)
class PpsrClient:
    config: UpstreamConfig = field(default_factory=get_ppsr_config)
    auth: httpx.Auth | None = None
    client_factory: ClientFactory = default_client_factory

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.auth)

    async def submit_grantor_search(self, criteria: Mapping[str, Any]) -> str:
        return await self._submit(GRANTOR_SEARCH_PATH, criteria)

    async def submit_serial_search(self, criteria: Mapping[str, Any]) -> str:
        return await self._submit(SERIAL_SEARCH_PATH, criteria)

    async def result_details(
        self, search_identifier: str, *, page_number: int = 1, page_size: int = RESULT_PAGE_SIZE
    ) -> dict[str, Any]:
        body = {
            "auSearchIdentifier": search_identifier,
            "pageNumber": page_number,
            "pageSize": page_size,
        }
        async with self._client() as client:
            response = await client.post(RESULT_DETAILS_PATH, json=body)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            msg = "Unexpected PPSR result payload"
            raise PpsrAPIError(msg)
        return payload

    async def _submit(self, path: str, criteria: Mapping[str, Any]) -> str:
        body = {
            "customerRequestId": f"dossier-{uuid4().hex[:12]}",
            "clientReference": self.config.options.get("client_reference", "Dossier Search"),
            "pointInTime": None,
            "criteria": [dict(criteria)],
        }
        async with self._client() as client:
            response = await client.post(path, json=body)
        response.raise_for_status()
        identifier = SubmitResponse.model_validate(response.json()).search_identifier
        if not identifier:
            msg = "No ppsrCloudId returned from PPSR submit request"
            raise PpsrAPIError(msg)
        log.info("Submitted PPSR search %s", identifier)
        return identifier
