"""CoreLogic property adapter."""

from __future__ import annotations

from .client import CoreLogicClient
from .sources import PropertySource

__all__ = ["CoreLogicClient", "PropertySource"]
