from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

from dossier.domain.acquisition.sources import FanOutSource, SourceResult, subject_as
from dossier.domain.model import Individual, ReportType

from .client import CourtDataClient, CourtKind, court_fullname

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dossier.domain.acquisition.sources import FetchContext, SourceRequest

SECTION_NAMES: dict[CourtKind, str] = {
    "criminal": "criminal_court",
    "civil": "civil_court",
}

KINDS_BY_REPORT: dict[ReportType, tuple[CourtKind, ...]] = {
    ReportType.DIRECTOR_COURT: ("criminal", "civil"),
    ReportType.DIRECTOR_COURT_CIVIL: ("civil",),
    ReportType.DIRECTOR_COURT_CRIMINAL: ("criminal",),
}


@dataclass
class DirectorCourtSource(FanOutSource):
    """Civil and criminal court records for an individual.

    Each court and state is searched independently; a report type that excludes a
    court still carries its section as ``None``.
    """

    report_types = tuple(KINDS_BY_REPORT)
    required_fields = ("subject.family_name",)

    client: CourtDataClient = field(default_factory=CourtDataClient)

    def _states(self, request: SourceRequest) -> tuple[str, ...]:
        return request.options.states or (self.client.default_state,)

    def branches(
        self, request: SourceRequest, context: FetchContext
    ) -> dict[str, Callable[[], Awaitable[Any]]]:
        subject = subject_as(request, Individual)
        fullname = court_fullname(subject.given_name, subject.family_name)
        return {
            f"{SECTION_NAMES[kind]}:{state}": partial(
                self.client.search, kind, fullname=fullname, state=state
            )
            for kind in KINDS_BY_REPORT[request.report_type]
            for state in self._states(request)
        }

    def combine(self, request: SourceRequest, sections: dict[str, Any]) -> SourceResult:
        states = self._states(request)
        payload: dict[str, Any] = dict.fromkeys(SECTION_NAMES.values())
        for kind in KINDS_BY_REPORT[request.report_type]:
            name = SECTION_NAMES[kind]
            if len(states) == 1:
                payload[name] = sections[f"{name}:{states[0]}"]
            else:
                payload[name] = {state: sections[f"{name}:{state}"] for state in states}
        payload["states"] = list(states)
        return SourceResult(payload=payload)
