"""Domain model for report acquisition."""

from __future__ import annotations

from .deltas import DeltaKind, NotificationDelta
from .jobs import AsyncJob, Page
from .reports import (
    ADDRESS_REPORTS,
    CURRENT_FAMILY,
    Address,
    ReportOptions,
    ReportType,
    TitleDetail,
    TitleReference,
    cache_report_type,
)
from .snapshot import ReportSnapshot, utcnow
from .subject import Individual, Organisation, Subject, sanitize_business_number

__all__ = [
    "ADDRESS_REPORTS",
    "CURRENT_FAMILY",
    "Address",
    "AsyncJob",
    "DeltaKind",
    "Individual",
    "NotificationDelta",
    "Organisation",
    "Page",
    "ReportOptions",
    "ReportSnapshot",
    "ReportType",
    "Subject",
    "TitleDetail",
    "TitleReference",
    "cache_report_type",
    "sanitize_business_number",
    "utcnow",
]
