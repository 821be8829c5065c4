"""Unclaimed money register adapter."""

from __future__ import annotations

from .client import UnclaimedMoneyClient
from .sources import UnclaimedMoneySource

__all__ = ["UnclaimedMoneyClient", "UnclaimedMoneySource"]
