"""AFSA bankruptcy register adapter."""

from __future__ import annotations

from .client import AfsaClient
from .schema import BankruptcySearchResult
from .sources import DirectorBankruptcySource

__all__ = ["AfsaClient", "BankruptcySearchResult", "DirectorBankruptcySource"]
