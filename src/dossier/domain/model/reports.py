"""Report types and per-request options."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal


class ReportType(StrEnum):
    ASIC_CURRENT = "asic-current"
    ASIC_HISTORICAL = "asic-historical"
    ASIC_COMPANY = "asic-company"
    COURT = "court"
    ATO = "ato"
    PPSR = "ppsr"
    DIRECTOR_PPSR = "director-ppsr"
    VEHICLE_PPSR = "vehicle-ppsr"
    DIRECTOR_BANKRUPTCY = "director-bankruptcy"
    DIRECTOR_RELATED = "director-related"
    DIRECTOR_COURT = "director-court"
    DIRECTOR_COURT_CIVIL = "director-court-civil"
    DIRECTOR_COURT_CRIMINAL = "director-court-criminal"
    PROPERTY = "property"
    DIRECTOR_PROPERTY = "director-property"
    LAND_TITLE_REFERENCE = "land-title-reference"
    LAND_TITLE_ADDRESS = "land-title-address"
    LAND_TITLE_ORGANISATION = "land-title-organisation"
    LAND_TITLE_INDIVIDUAL = "land-title-individual"
    TRADEMARK = "trademark"
    SOLE_TRADER_CHECK = "sole-trader-check"
    UNCLAIMED_MONEY = "unclaimed-money"


CURRENT_FAMILY: frozenset[ReportType] = frozenset(
    {ReportType.ASIC_CURRENT, ReportType.COURT, ReportType.ATO}
)

ADDRESS_REPORTS: frozenset[ReportType] = frozenset(
    {ReportType.LAND_TITLE_ADDRESS, ReportType.PROPERTY}
)


def cache_report_type(report_type: ReportType) -> ReportType:
    """Report type under which snapshots for ``report_type`` are stored."""
    if report_type in CURRENT_FAMILY:
        return ReportType.ASIC_CURRENT
    return report_type


type TitleDetail = Literal["ALL", "CURRENT", "PAST"]


@dataclass(frozen=True, slots=True)
class Address:
    text: str | None = None
    unit_number: str | None = None
    street_number: str | None = None
    street_name: str | None = None
    street_type: str | None = None
    locality: str | None = None
    state: str | None = None
    postcode: str | None = None

    @property
    def street_line(self) -> str:
        number = self.street_number or ""
        if self.unit_number:
            number = f"{self.unit_number}/{number}"
        parts = (number, self.street_name, self.street_type)
        return " ".join(part for part in parts if part)

    def display(self) -> str:
        if self.text:
            return self.text
        tail = " ".join(part for part in (self.locality, self.state, self.postcode) if part)
        return ", ".join(part for part in (self.street_line, tail) if part)


@dataclass(frozen=True, slots=True)
class TitleReference:
    reference: str
    jurisdiction: str

    @property
    def key(self) -> str:
        return f"{self.jurisdiction.upper()}:{self.reference.upper()}"


@dataclass(frozen=True, slots=True)
class ReportOptions:
    title_reference: str | None = None
    jurisdiction: str | None = None
    address: Address | None = None
    states: tuple[str, ...] = ()
    title_references: tuple[TitleReference, ...] = ()
    detail: TitleDetail = "ALL"
    include_valuation: bool = False
    serial_number: str | None = None
