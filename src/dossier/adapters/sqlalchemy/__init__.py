"""Snapshot persistence on SQLAlchemy."""

from __future__ import annotations

from .mappings import mapper_registry, report_snapshot_table, start_mappers
from .repositories import SqlAlchemySnapshotRepository

__all__ = [
    "SqlAlchemySnapshotRepository",
    "mapper_registry",
    "report_snapshot_table",
    "start_mappers",
]
