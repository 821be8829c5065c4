"""PPSR Cloud adapter."""

from __future__ import annotations

from .client import PpsrAPIError, PpsrClient
from .sources import PpsrIndividualSource, PpsrOrganisationSource, PpsrVehicleSource

__all__ = [
    "PpsrAPIError",
    "PpsrClient",
    "PpsrIndividualSource",
    "PpsrOrganisationSource",
    "PpsrVehicleSource",
]
