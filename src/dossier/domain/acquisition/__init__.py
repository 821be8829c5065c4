"""Report acquisition: cache checks, upstream fetching, normalization and storage."""

from __future__ import annotations

from .keys import search_label, subject_key
from .normalization import Extraction, extract, rewrap, to_document
from .orchestrator import Orchestrator, UnitOfWorkFactory
from .pagination import collect_all
from .polling import JobPoller
from .registry import AdapterRegistry
from .retry import ResultNotReadyError, backoff_delay, with_retry
from .single_flight import KeyedLocks, SingleFlight
from .sources import (
    FanOutSource,
    FetchContext,
    PaginatedSource,
    ReportSource,
    SourceRequest,
    SourceResult,
    SubUnit,
    SynchronousSource,
    TwoPhaseSource,
    all_failed,
    required,
    subject_as,
)

__all__ = [
    "AdapterRegistry",
    "Extraction",
    "FanOutSource",
    "FetchContext",
    "JobPoller",
    "KeyedLocks",
    "Orchestrator",
    "PaginatedSource",
    "ReportSource",
    "ResultNotReadyError",
    "SingleFlight",
    "SourceRequest",
    "SourceResult",
    "SubUnit",
    "SynchronousSource",
    "TwoPhaseSource",
    "UnitOfWorkFactory",
    "all_failed",
    "backoff_delay",
    "collect_all",
    "extract",
    "required",
    "rewrap",
    "search_label",
    "subject_as",
    "subject_key",
    "to_document",
    "with_retry",
]
