"""Derivation of cache keys and search labels from a request."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dossier.domain.errors import InvalidInputError
from dossier.domain.model import (
    ADDRESS_REPORTS,
    Individual,
    Organisation,
    ReportOptions,
    ReportType,
    TitleReference,
)

if TYPE_CHECKING:
    from dossier.domain.model import Address, Subject

_WHITESPACE = re.compile(r"\s+")
_ADDRESS_NOISE = re.compile(r"[^\w/ ]+")


def _normalize_text(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip().lower()


def normalize_address(address: Address) -> str:
    text = _ADDRESS_NOISE.sub(" ", address.display())
    return _normalize_text(text)


def individual_key(individual: Individual) -> str:
    if individual.person_id:
        return individual.person_id
    dob = individual.date_of_birth.isoformat() if individual.date_of_birth else ""
    return "|".join(
        (_normalize_text(individual.family_name), _normalize_text(individual.given_name), dob)
    )


def subject_key(subject: Subject, report_type: ReportType, options: ReportOptions) -> str:
    """Stable identity of the thing a report describes.

    Title references, addresses and vehicle serials identify the report on their own.
    A director's property report is keyed by the person and the address searched;
    everything else is keyed by its subject.
    """
    if report_type is ReportType.LAND_TITLE_REFERENCE:
        if not options.title_reference or not options.jurisdiction:
            msg = "title reference and jurisdiction are required"
            raise InvalidInputError(msg)
        return TitleReference(options.title_reference, options.jurisdiction).key
    if report_type in ADDRESS_REPORTS and options.address is not None:
        return normalize_address(options.address)
    if report_type is ReportType.VEHICLE_PPSR:
        if not options.serial_number:
            msg = "serial number is required for vehicle searches"
            raise InvalidInputError(msg)
        return _WHITESPACE.sub("", options.serial_number).upper()
    key = _subject_identity(subject)
    if report_type is ReportType.DIRECTOR_PROPERTY and options.address is not None:
        return f"{key}@{normalize_address(options.address)}"
    return key


def _subject_identity(subject: Subject) -> str:
    match subject:
        case Organisation(business_number=business_number):
            if not business_number:
                msg = "organisation subjects need a business number"
                raise InvalidInputError(msg)
            return business_number
        case Individual():
            if not subject.family_name.strip():
                msg = "individual subjects need a family name"
                raise InvalidInputError(msg)
            return individual_key(subject)


def search_label(subject: Subject) -> str:
    match subject:
        case Organisation(business_number=business_number, name=name):
            return name or business_number
        case Individual(date_of_birth=dob):
            parts = [subject.given_name, subject.family_name]
            if dob is not None:
                parts.append(dob.isoformat())
            return " ".join(part.strip() for part in parts if part and part.strip())
