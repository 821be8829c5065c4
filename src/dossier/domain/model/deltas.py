"""Incremental notification deltas from the monitoring feed."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .reports import ReportType


class DeltaKind(StrEnum):
    NEW_CASE = "newCase"
    NEW_DOCUMENT = "newDocument"
    TAX_DEBT_UPDATE = "taxDebtUpdate"
    RISK_FACTOR_UPDATE = "riskFactorUpdate"
    LICENCE_UPDATE = "licenceUpdate"


class NotificationDelta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    target_subject_key: str = Field(alias="targetSubjectKey")
    target_report_type: ReportType = Field(alias="targetReportType")
    kind: DeltaKind
    payload: dict[str, Any] = Field(default_factory=dict)
