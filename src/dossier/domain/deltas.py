"""Merging monitoring-feed deltas into stored report documents."""

from __future__ import annotations

import copy
import hashlib
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import Any

from dossier.domain.errors import InvalidInputError
from dossier.domain.model import DeltaKind, NotificationDelta, ReportSnapshot, utcnow

log = getLogger(__name__)

NATURAL_ID_FIELDS: tuple[str, ...] = (
    "id",
    "caseId",
    "caseNumber",
    "documentId",
    "licenceId",
    "licenceNumber",
    "number",
)

LIST_SECTIONS: dict[DeltaKind, str] = {
    DeltaKind.NEW_CASE: "cases",
    DeltaKind.NEW_DOCUMENT: "documents",
    DeltaKind.LICENCE_UPDATE: "licences",
}


def natural_id(item: Any) -> str:
    if isinstance(item, Mapping):
        for name in NATURAL_ID_FIELDS:
            value = item.get(name)
            if value not in (None, ""):
                return f"{name}:{value}"
    canonical = json.dumps(item, sort_keys=True, separators=(",", ":"), default=str)
    return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def document_body(document: dict[str, Any]) -> dict[str, Any]:
    """The part of a document deltas apply to: ``data`` when it is a mapping."""
    body = document.get("data")
    if isinstance(body, dict):
        return body
    return document


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _append_unique(body: dict[str, Any], section: str, item: Mapping[str, Any]) -> bool:
    items = body.get(section)
    if not isinstance(items, list):
        items = []
        body[section] = items
    item_id = natural_id(item)
    if any(natural_id(existing) == item_id for existing in items):
        return False
    items.append(dict(item))
    return True


def _update_tax_debt(body: dict[str, Any], payload: Mapping[str, Any], now: datetime) -> bool:
    fields = {
        name: value
        for name, value in payload.items()
        if name != "updatedAt" and _is_scalar(value)
    }
    tax_debt = body.get("taxDebt")
    if not isinstance(tax_debt, dict):
        tax_debt = {}
    if all(tax_debt.get(name) == value for name, value in fields.items()) and "taxDebt" in body:
        return False
    tax_debt.update(fields)
    tax_debt["updatedAt"] = now.isoformat()
    body["taxDebt"] = tax_debt
    return True


def _risk_factor(payload: Mapping[str, Any]) -> tuple[str, Any]:
    name = payload.get("factor", payload.get("name"))
    if isinstance(name, str) and "value" in payload:
        return name, payload["value"]
    if len(payload) == 1:
        ((name, value),) = payload.items()
        return name, value
    msg = "risk factor updates need a factor name and a value"
    raise InvalidInputError(msg)


def _update_risk_factor(body: dict[str, Any], payload: Mapping[str, Any]) -> bool:
    name, value = _risk_factor(payload)
    if not _is_scalar(value):
        msg = f"risk factor {name!r} must be a scalar"
        raise InvalidInputError(msg)
    factors = body.get("riskFactors")
    if not isinstance(factors, dict):
        factors = {}
    if name in factors and factors[name] == value:
        return False
    factors[name] = value
    body["riskFactors"] = factors
    return True


@dataclass(slots=True)
class MergeEngine:
    """Applies deltas idempotently.

    A delta that changes the document raises the alert flag and bumps the alert
    count. Re-applying it leaves the snapshot untouched.
    """

    clock: Callable[[], datetime] = field(default=utcnow)

    def merge(self, document: Mapping[str, Any], delta: NotificationDelta) -> dict[str, Any] | None:
        """Merged copy of ``document``, or ``None`` when the delta is already reflected."""
        merged = copy.deepcopy(dict(document))
        body = document_body(merged)
        match delta.kind:
            case DeltaKind.NEW_CASE | DeltaKind.NEW_DOCUMENT | DeltaKind.LICENCE_UPDATE:
                changed = _append_unique(body, LIST_SECTIONS[delta.kind], delta.payload)
            case DeltaKind.TAX_DEBT_UPDATE:
                changed = _update_tax_debt(body, delta.payload, self.clock())
            case DeltaKind.RISK_FACTOR_UPDATE:
                changed = _update_risk_factor(body, delta.payload)
        return merged if changed else None

    def apply(self, delta: NotificationDelta, snapshot: ReportSnapshot) -> ReportSnapshot:
        merged = self.merge(snapshot.document, delta)
        if merged is None:
            log.debug("Delta %s already applied to %s", delta.kind, snapshot.subject_key)
            return snapshot
        snapshot.document = merged
        snapshot.alert_flag = True
        snapshot.alert_count += 1
        snapshot.updated_at = self.clock()
        log.info(
            "Applied %s to %s/%s (alerts=%d)",
            delta.kind,
            snapshot.report_type,
            snapshot.subject_key,
            snapshot.alert_count,
        )
        return snapshot
