"""Pydantic models describing Alares report and watchlist payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

PENDING_STATUSES = frozenset({"pending", "processing", "queued", "in_progress"})


class AlaresBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class ReportCreated(AlaresBaseModel):
    uuid: str

    @model_validator(mode="before")
    @classmethod
    def _unwrap_data(cls, value: object) -> object:
        if isinstance(value, Mapping) and "uuid" not in value:
            data = value.get("data")
            if isinstance(data, Mapping):
                return data
        return value


class PersonMatch(AlaresBaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    person_id: str
    search_id: str | None = None
    name: str | None = None
    dob: str | None = None


class _Timestamped(AlaresBaseModel):
    created_at: datetime | None = None


class WatchlistEntityPayload(AlaresBaseModel):
    id: str
    abn: str | None = None
    num_alerts: int = 0
    created_at: datetime | None = None
    latest_report: _Timestamped | None = None
    entity: _Timestamped | None = None

    @property
    def latest_report_at(self) -> datetime | None:
        if self.latest_report and self.latest_report.created_at:
            return self.latest_report.created_at
        if self.created_at:
            return self.created_at
        return self.entity.created_at if self.entity else None


class WatchlistEntitiesResponse(AlaresBaseModel):
    data: list[WatchlistEntityPayload] = Field(default_factory=list)


def report_pending(payload: Any) -> bool:
    if not isinstance(payload, Mapping):
        return False
    status = payload.get("status")
    return isinstance(status, str) and status.lower() in PENDING_STATUSES
