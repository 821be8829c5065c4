from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BankruptcySearchResult(BaseModel):
    """National Personal Insolvency Index search-by-name response."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    insolvency_search_id: str | None = Field(default=None, alias="insolvencySearchId")
    result_count: int | None = Field(default=None, alias="resultCount")
    result_limit_exceeded: bool = Field(default=False, alias="resultLimitExceeded")
    operation_fee_amount: float | None = Field(default=None, alias="operationFeeAmount")
    insolvencies: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return self.result_count if self.result_count is not None else len(self.insolvencies)
