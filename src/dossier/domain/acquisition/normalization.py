"""Locating the record list inside heterogeneous response shapes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

DEFAULT_CANDIDATES: tuple[str, ...] = ("data.records", "records", "data", "")

_MISSING = object()


@dataclass(frozen=True, slots=True)
class Extraction:
    records: list[Any]
    path: str | None

    @property
    def empty(self) -> bool:
        """No records, whether no path matched or the matched list is empty."""
        return not self.records


def resolve_path(payload: Any, path: str) -> Any:
    if not path:
        return payload
    current = payload
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def extract(payload: Any, candidates: tuple[str, ...] = DEFAULT_CANDIDATES) -> Extraction:
    """Return the first candidate path whose value is a list.

    An empty candidate means the payload root. No match yields no records and no path.
    """
    for path in candidates:
        value = resolve_path(payload, path)
        if isinstance(value, list):
            return Extraction(records=value, path=path)
    return Extraction(records=[], path=None)


def rewrap(records: list[Any], path: str | None) -> Any:
    """Rebuild the shape ``extract`` found ``records`` in."""
    if not path:
        return records
    wrapped: Any = records
    for part in reversed(path.split(".")):
        wrapped = {part: wrapped}
    return wrapped


def to_document(
    payload: Any,
    *,
    identifier: str,
    candidates: tuple[str, ...] = DEFAULT_CANDIDATES,
) -> tuple[dict[str, Any], Extraction]:
    """Canonical stored form of a payload.

    Mappings are kept as they are. A bare list is stored under ``records`` and any
    other value under ``value``. The document carries a ``uuid`` and a ``_meta``
    entry describing where its records were found.
    """
    extraction = extract(payload, candidates)
    records_path = extraction.path
    if isinstance(payload, Mapping):
        document = dict(payload)
    elif isinstance(payload, list):
        document = {"records": payload}
        records_path = "records"
    else:
        document = {"value": payload}
    document.setdefault("uuid", identifier)
    document["_meta"] = {"recordsPath": records_path, "recordCount": len(extraction.records)}
    return document, extraction
