"""SQLAlchemy mapping metadata for report snapshots."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from dossier.domain.model import ReportSnapshot, ReportType

log = logging.getLogger(__name__)

REPORT_TYPE_LENGTH = 32


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_values(enum_cls: type[ReportType]) -> list[str]:
    return [member.value for member in enum_cls]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

report_snapshot_table = Table(
    "report_snapshot",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "report_type",
        Enum(
            ReportType,
            native_enum=False,
            values_callable=_enum_values,
            length=REPORT_TYPE_LENGTH,
            validate_strings=True,
        ),
        nullable=False,
    ),
    Column("subject_key", String, nullable=False),
    Column("business_number", String(11), nullable=True),
    Column("external_id", String, nullable=True),
    Column("search_label", String, nullable=True),
    Column("document", JSON, nullable=False),
    Column("alert_flag", Boolean, nullable=False, default=False),
    Column("alert_count", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_report_snapshot_lookup", "report_type", "subject_key", "created_at"),
    Index("ix_report_snapshot_business_number", "business_number"),
    Index("ix_report_snapshot_search_label", "report_type", "search_label"),
)


@cache
def start_mappers() -> orm.registry:
    """Map the snapshot dataclass onto its table (idempotent)."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(ReportSnapshot, report_snapshot_table)
    configure_mappers()
    return mapper_registry
