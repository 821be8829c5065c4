"""Ports the acquisition layer depends on."""

from __future__ import annotations

from .credentials import CredentialProvider
from .persistence import SnapshotRepository
from .unit_of_work import SnapshotRepositories, SnapshotUnitOfWork

__all__ = [
    "CredentialProvider",
    "SnapshotRepositories",
    "SnapshotRepository",
    "SnapshotUnitOfWork",
]
