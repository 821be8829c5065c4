"""IP Australia trade mark adapter."""

from __future__ import annotations

from .client import IpAustraliaClient
from .sources import TrademarkSource

__all__ = ["IpAustraliaClient", "TrademarkSource"]
