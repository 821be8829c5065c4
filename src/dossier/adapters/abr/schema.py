"""Pydantic models describing Australian Business Register payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class AbrBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AbnDetails(AbrBaseModel):
    abn: str | None = Field(default=None, alias="Abn")
    abn_status: str | None = Field(default=None, alias="AbnStatus")
    acn: str | None = Field(default=None, alias="Acn")
    entity_name: str | None = Field(default=None, alias="EntityName")
    entity_type_code: str | None = Field(default=None, alias="EntityTypeCode")
    entity_type_name: str | None = Field(default=None, alias="EntityTypeName")
    business_names: list[str] = Field(default_factory=list, alias="BusinessName")
    postcode: str | None = Field(default=None, alias="AddressPostcode")
    state: str | None = Field(default=None, alias="AddressState")
    gst: str | None = Field(default=None, alias="Gst")
    message: str | None = Field(default=None, alias="Message")

    _normalize = field_validator(
        "abn", "acn", "entity_name", "postcode", "state", "gst", "message", mode="before"
    )(_blank_to_none)

    @property
    def found(self) -> bool:
        return self.abn is not None


class NameMatch(AbrBaseModel):
    abn: str = Field(alias="Abn")
    abn_status: str | None = Field(default=None, alias="AbnStatus")
    is_current: bool | None = Field(default=None, alias="IsCurrent")
    name: str = Field(alias="Name")
    name_type: str | None = Field(default=None, alias="NameType")
    postcode: str | None = Field(default=None, alias="Postcode")
    score: int | None = Field(default=None, alias="Score")
    state: str | None = Field(default=None, alias="State")


class MatchingNamesResponse(AbrBaseModel):
    message: str | None = Field(default=None, alias="Message")
    names: list[NameMatch] = Field(default_factory=list, alias="Names")

    _normalize = field_validator("message", mode="before")(_blank_to_none)


class SoleTraderRecord(AbrBaseModel):
    abn: str
    status: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    state: str | None = None
    postcode: str | None = None
    score: int | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.given_name, self.family_name) if part)
