"""Pydantic models for GlobalX national property orders."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dossier.domain.model import TitleReference


class GlobalXBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class OrderResultBlock(GlobalXBaseModel):
    order_identifier: str | None = Field(default=None, alias="OrderIdentifier")
    result_uri: str | None = Field(default=None, alias="ResultURI")


class OrderCreated(GlobalXBaseModel):
    result: OrderResultBlock = Field(default_factory=OrderResultBlock, alias="OrderResultBlock")


class IdentityBlock(GlobalXBaseModel):
    title_reference: str | None = Field(default=None, alias="TitleReference")
    jurisdiction: str | None = Field(default=None, alias="Jurisdiction")


class RealPropertySegment(GlobalXBaseModel):
    identity: IdentityBlock | None = Field(default=None, alias="IdentityBlock")


class LocatorResult(GlobalXBaseModel):
    segments: list[RealPropertySegment] = Field(default_factory=list, alias="RealPropertySegment")

    def title_references(self, default_jurisdiction: str | None = None) -> list[TitleReference]:
        references: list[TitleReference] = []
        for segment in self.segments:
            identity = segment.identity
            if identity is None or not identity.title_reference:
                continue
            jurisdiction = identity.jurisdiction or default_jurisdiction
            if not jurisdiction:
                continue
            references.append(TitleReference(identity.title_reference, jurisdiction))
        return references


def located_address(title_order: Any) -> str | None:
    """One-line address of the first location on a title order, if it has one."""
    if not isinstance(title_order, dict):
        return None
    locations = title_order.get("LocationSegment") or []
    if not locations or not isinstance(locations[0], dict):
        return None
    address = locations[0].get("Address") or {}
    keys = ("StreetNumber", "StreetName", "StreetType", "City", "State", "PostCode")
    parts = [str(address[key]) for key in keys if address.get(key)]
    return " ".join(parts) or None
