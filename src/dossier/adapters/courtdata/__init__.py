"""CourtData adapter."""

from __future__ import annotations

from .client import CourtDataClient, court_fullname
from .sources import DirectorCourtSource

__all__ = ["CourtDataClient", "DirectorCourtSource", "court_fullname"]
