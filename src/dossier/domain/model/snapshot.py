"""Persisted report snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .reports import ReportType


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class ReportSnapshot:
    """Stored document for one ``(report_type, subject_key)`` at a point in time.

    Several rows may exist per key; the newest by ``created_at`` (then ``id``) is
    authoritative and the others are kept for audit.
    """

    report_type: ReportType
    subject_key: str
    document: dict[str, Any]
    business_number: str | None = None
    external_id: str | None = None
    search_label: str | None = None
    alert_flag: bool = False
    alert_count: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: int | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def record_count(self) -> int | None:
        meta = self.document.get("_meta")
        if isinstance(meta, dict):
            count = meta.get("recordCount")
            if isinstance(count, int):
                return count
        return None
