from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dossier.domain.errors import InvalidInputError
from dossier.domain.model import ReportType

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .sources import ReportSource

log = getLogger(__name__)


class AdapterRegistry:
    """Maps report types to the source that serves them."""

    def __init__(self) -> None:
        self._sources: dict[ReportType, ReportSource] = {}

    def register(self, source: ReportSource) -> None:
        if not source.report_types:
            msg = f"{type(source).__name__} declares no report types"
            raise ValueError(msg)
        for report_type in source.report_types:
            if report_type in self._sources:
                log.warning(
                    "Replacing %s source %s with %s",
                    report_type,
                    type(self._sources[report_type]).__name__,
                    type(source).__name__,
                )
            self._sources[report_type] = source

    def resolve(self, report_type: ReportType | str) -> ReportSource:
        try:
            key = ReportType(report_type)
        except ValueError as exc:
            msg = f"unknown report type: {report_type!r}"
            raise InvalidInputError(msg) from exc
        source = self._sources.get(key)
        if source is None:
            msg = f"no source configured for {key}"
            raise InvalidInputError(msg)
        return source

    def __contains__(self, report_type: object) -> bool:
        return report_type in self._sources

    def __iter__(self) -> Iterator[ReportType]:
        return iter(self._sources)
