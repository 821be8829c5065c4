"""Subjects a report can be acquired for."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

_NON_DIGITS = re.compile(r"\D+")


def sanitize_business_number(value: str) -> str:
    return _NON_DIGITS.sub("", value)


@dataclass(frozen=True, slots=True)
class Organisation:
    business_number: str
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "business_number", sanitize_business_number(self.business_number))

    @property
    def company_number(self) -> str | None:
        """Company number (ACN) embedded in an 11-digit business number (ABN)."""
        if len(self.business_number) == 11:
            return self.business_number[2:]
        return None


@dataclass(frozen=True, slots=True)
class Individual:
    given_name: str
    family_name: str
    date_of_birth: date | None = None
    person_id: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()


type Subject = Organisation | Individual
