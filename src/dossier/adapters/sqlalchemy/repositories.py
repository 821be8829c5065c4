"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from dossier.adapters.sqlalchemy.mappings import report_snapshot_table
from dossier.domain.model import ReportSnapshot

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select
    from sqlalchemy.orm import Session

    from dossier.domain.model import ReportType

_columns = report_snapshot_table.c


def _newest_first(stmt: Select[tuple[ReportSnapshot]]) -> Select[tuple[ReportSnapshot]]:
    return stmt.order_by(_columns.created_at.desc(), _columns.id.desc())


class SqlAlchemySnapshotRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, snapshot: ReportSnapshot) -> None:
        self.session.add(snapshot)
        # ids are handed back to callers before commit
        self.session.flush([snapshot])

    def get(self, snapshot_id: int) -> ReportSnapshot | None:
        return self.session.get(ReportSnapshot, snapshot_id)

    def latest(self, report_type: ReportType, subject_key: str) -> ReportSnapshot | None:
        stmt = _newest_first(
            select(ReportSnapshot)
            .where(_columns.report_type == report_type)
            .where(_columns.subject_key == subject_key)
        ).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def latest_by_label(self, report_type: ReportType, search_label: str) -> ReportSnapshot | None:
        stmt = _newest_first(
            select(ReportSnapshot)
            .where(_columns.report_type == report_type)
            .where(_columns.search_label == search_label)
        ).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def for_business_number(self, business_number: str) -> Sequence[ReportSnapshot]:
        stmt = _newest_first(
            select(ReportSnapshot).where(_columns.business_number == business_number)
        )
        return self.session.execute(stmt).scalars().all()
