"""Australian Business Register adapter."""

from __future__ import annotations

from .client import AbrAPIError, AbrClient, parse_jsonp, parse_name_search
from .schema import AbnDetails, MatchingNamesResponse, NameMatch, SoleTraderRecord
from .sources import SoleTraderCheckSource

__all__ = [
    "AbnDetails",
    "AbrAPIError",
    "AbrClient",
    "MatchingNamesResponse",
    "NameMatch",
    "SoleTraderCheckSource",
    "SoleTraderRecord",
    "parse_jsonp",
    "parse_name_search",
]
