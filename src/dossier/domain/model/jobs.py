from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class AsyncJob:
    """A submitted upstream job awaiting retrieval."""

    submission_id: str
    poll_url: str
    poll_interval: float
    timeout: float
    max_attempts: int = 5
    context: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class Page:
    records: list[Any]
    total: int | None = None
