"""Filter criteria for usage log queries.

Every field is optional; a criteria object with nothing set matches every
record.  The object is built field by field by the API and CLI layers so
that pydantic validates each value where it enters the system.
"""

from __future__ import annotations

import datetime as dt
import json
import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from staffdesk.logs.records import FinishReason, RequestType, to_naive_utc

_LIST_FIELDS = ("model_ids", "providers", "request_types", "finish_reasons")


class NumericRange(BaseModel):
    """Inclusive ``[min, max]`` bounds; a missing min is 0, a missing max is unbounded."""

    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def _check_order(self) -> NumericRange:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("range min must not be greater than max")
        return self

    def contains(self, value: float) -> bool:
        low = self.min if self.min is not None else 0
        high = self.max if self.max is not None else math.inf
        return low <= value <= high


class DateRange(BaseModel):
    start: dt.datetime | None = None
    end: dt.datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _normalize(cls, value: dt.datetime | None) -> dt.datetime | None:
        return to_naive_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_order(self) -> DateRange:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("date range start must not be after end")
        return self

    def contains(self, value: dt.datetime) -> bool:
        value = to_naive_utc(value)
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


class SortDirective(BaseModel):
    # unknown fields are accepted and sort as a no-op
    field: str = "created_at"
    direction: Literal["asc", "desc"] = "desc"


class FilterCriteria(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    search: str | None = None
    user_id: str | None = None
    model_ids: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    request_types: list[RequestType] = Field(default_factory=list)
    success: bool | None = None
    finish_reasons: list[FinishReason] = Field(default_factory=list)
    has_tool_calls: bool | None = None
    has_files: bool | None = None
    cost_range: NumericRange | None = None
    latency_range: NumericRange | None = None
    token_range: NumericRange | None = None
    date_range: DateRange | None = None
    sort: SortDirective | None = None

    def cache_key(self) -> str:
        """Serialize to a canonical string: equal filters give equal keys regardless of list order."""
        data = self.model_dump(mode="json", exclude_none=True)
        for name in _LIST_FIELDS:
            if data.get(name):
                data[name] = sorted(set(data[name]))
            else:
                data.pop(name, None)
        if data.get("search"):
            data["search"] = data["search"].lower()
        else:
            data.pop("search", None)
        for name in ("cost_range", "latency_range", "token_range", "date_range"):
            if name in data and not data[name]:
                del data[name]
        return json.dumps(data, sort_keys=True, separators=(",", ":"))
