"""HTTP client for the Australian Business Register lookup services."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import defusedxml.ElementTree as DefusedET

from dossier.adapters.http_resilience import ResilientClient, default_client_factory
from dossier.config.upstreams import get_abr_config
from dossier.domain.errors import SourceAPIError
from dossier.domain.model import sanitize_business_number

from .schema import AbnDetails, MatchingNamesResponse, NameMatch, SoleTraderRecord

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from dossier.adapters.http_resilience import ClientFactory
    from dossier.config.upstreams import UpstreamConfig

log = getLogger(__name__)

_JSONP = re.compile(r"callback\((.*)\)", re.DOTALL)
ABN_DETAILS_PATH = "/json/AbnDetails.aspx"
MATCHING_NAMES_PATH = "/json/MatchingNames.aspx"
NAME_SEARCH_XML_PATH = "/abrxmlsearch/AbrXmlSearch.asmx/ABRSearchByNameAdvancedSimpleProtocol2017"
STATE_CODES = ("NSW", "SA", "ACT", "VIC", "WA", "NT", "QLD", "TAS")


class AbrAPIError(SourceAPIError):
    """Raised when the register answers with something other than a lookup result."""


def parse_jsonp(text: str) -> object:
    match = _JSONP.search(text)
    if match is None:
        msg = "Invalid ABN lookup response format"
        raise AbrAPIError(msg)
    return json.loads(match.group(1))


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: Element, *path: str) -> Element | None:
    current: Element | None = element
    for name in path:
        if current is None:
            return None
        current = next((item for item in current if _local(item.tag) == name), None)
    return current


def _text(element: Element, *path: str) -> str | None:
    found = _child(element, *path)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


def parse_name_search(xml_text: str) -> list[SoleTraderRecord]:
    """Individual (legal name) records from an XML name search response."""
    root = DefusedET.fromstring(xml_text)
    exception = next((item for item in root.iter() if _local(item.tag) == "exception"), None)
    if exception is not None:
        description = _text(exception, "exceptionDescription") or "ABR search failed"
        # the register reports "no records found" as an exception
        if "no records" in description.lower():
            return []
        raise AbrAPIError(description)

    records: list[SoleTraderRecord] = []
    for item in root.iter():
        if _local(item.tag) != "searchResultsRecord":
            continue
        legal_name = _child(item, "legalName")
        abn = _text(item, "ABN", "identifierValue")
        if legal_name is None or abn is None:
            continue
        score = _text(legal_name, "score")
        records.append(
            SoleTraderRecord(
                abn=abn,
                status=_text(item, "ABN", "identifierStatus"),
                given_name=_text(legal_name, "givenName"),
                family_name=_text(legal_name, "familyName"),
                state=_text(item, "mainBusinessPhysicalAddress", "stateCode"),
                postcode=_text(item, "mainBusinessPhysicalAddress", "postcode"),
                score=int(score) if score and score.isdigit() else None,
            )
        )
    return records


@dataclass(slots=True)
class AbrClient:
    config: UpstreamConfig = field(default_factory=get_abr_config)
    client_factory: ClientFactory = default_client_factory

    @property
    def guid(self) -> str:
        return self.config.options["guid"]

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, None)

    async def abn_details(self, business_number: str) -> AbnDetails:
        params = {
            "abn": sanitize_business_number(business_number),
            "callback": "callback",
            "guid": self.guid,
        }
        async with self._client() as client:
            response = await client.get(ABN_DETAILS_PATH, params=params)
        response.raise_for_status()
        details = AbnDetails.model_validate(parse_jsonp(response.text))
        if details.message and not details.found:
            raise AbrAPIError(details.message)
        return details

    async def matching_names(self, name: str, *, max_results: int = 10) -> list[NameMatch]:
        params = {"name": name, "maxResults": str(max_results), "guid": self.guid}
        async with self._client() as client:
            response = await client.get(MATCHING_NAMES_PATH, params=params)
        response.raise_for_status()
        result = MatchingNamesResponse.model_validate(parse_jsonp(response.text))
        if result.message and not result.names:
            raise AbrAPIError(result.message)
        return result.names

    async def search_company(self, term: str) -> list[AbnDetails] | list[NameMatch]:
        """Look a business up by number when ``term`` looks like one, else by name."""
        digits = sanitize_business_number(term)
        if len(digits) >= 9:
            log.info("Searching register by number: %s", digits)
            details = await self.abn_details(digits)
            return [details] if details.found else []
        log.info("Searching register by name: %s", term)
        return await self.matching_names(term)

    async def individual_name_search(
        self, given_name: str, family_name: str, *, postcode: str | None = None
    ) -> list[SoleTraderRecord]:
        params = {
            "name": f"{given_name} {family_name}".strip(),
            "postcode": postcode or "",
            "legalName": "Y",
            "tradingName": "N",
            "businessName": "N",
            "activeABNsOnly": "N",
            "searchWidth": "typical",
            "minimumScore": "90",
            "maxSearchResults": "50",
            "authenticationGuid": self.guid,
        }
        params.update(dict.fromkeys(STATE_CODES, "Y"))
        async with self._client() as client:
            response = await client.get(NAME_SEARCH_XML_PATH, params=params)
        response.raise_for_status()
        return parse_name_search(response.text)
