"""GlobalX national property adapter."""

from __future__ import annotations

from .client import GlobalXAPIError, GlobalXClient
from .schema import LocatorResult, located_address
from .sources import (
    JURISDICTIONS,
    LandTitleAddressSource,
    LandTitleOwnerSource,
    LandTitleReferenceSource,
    PropertyValuer,
    TitleOrders,
    title_document,
)

__all__ = [
    "JURISDICTIONS",
    "GlobalXAPIError",
    "GlobalXClient",
    "LandTitleAddressSource",
    "LandTitleOwnerSource",
    "LandTitleReferenceSource",
    "LocatorResult",
    "PropertyValuer",
    "TitleOrders",
    "located_address",
    "title_document",
]
