"""Alares ASIC reporting adapter."""

from __future__ import annotations

from .client import AlaresAPIError, AlaresClient
from .schema import PersonMatch, ReportCreated, WatchlistEntityPayload
from .sources import AsicReportSource, DirectorRelatedSource
from .watchlist import AlaresWatchlistFeed

__all__ = [
    "AlaresAPIError",
    "AlaresClient",
    "AlaresWatchlistFeed",
    "AsicReportSource",
    "DirectorRelatedSource",
    "PersonMatch",
    "ReportCreated",
    "WatchlistEntityPayload",
]
