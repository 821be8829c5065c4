from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PpsrBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class SubmittedResource(PpsrBaseModel):
    ppsr_cloud_id: str | None = Field(default=None, alias="ppsrCloudId")


class SubmitResponse(PpsrBaseModel):
    resource: SubmittedResource | None = None

    @property
    def search_identifier(self) -> str | None:
        return self.resource.ppsr_cloud_id if self.resource else None
