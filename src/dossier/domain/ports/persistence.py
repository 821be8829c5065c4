"""Ports for persisting report snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dossier.domain.model import ReportSnapshot, ReportType


@runtime_checkable
class SnapshotRepository(Protocol):
    """Persistence contract for report snapshots."""

    def add(self, snapshot: ReportSnapshot) -> None: ...

    def get(self, snapshot_id: int) -> ReportSnapshot | None: ...

    def latest(self, report_type: ReportType, subject_key: str) -> ReportSnapshot | None: ...

    def latest_by_label(
        self, report_type: ReportType, search_label: str
    ) -> ReportSnapshot | None: ...

    def for_business_number(self, business_number: str) -> Sequence[ReportSnapshot]: ...
