"""Request and response schemas for the search endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

_DATE_PATTERN = r"^\d{2}/\d{2}/\d{4}$"


class StartSearchRequest(BaseModel):
    pickup_start: str = Field(pattern=_DATE_PATTERN, examples=["01/03/2026"])
    pickup_end: str = Field(pattern=_DATE_PATTERN, examples=["02/03/2026"])
    return_start: str = Field(pattern=_DATE_PATTERN, examples=["10/03/2026"])
    return_end: str = Field(pattern=_DATE_PATTERN, examples=["10/03/2026"])
    min_days: int | None = Field(default=None, ge=1, le=365)
    delay_ms: int | None = Field(default=None, ge=0, le=600_000)


class StartSearchResponse(BaseModel):
    task_id: str
    status: str
    total: int


class StopSearchResponse(BaseModel):
    task_id: str
    status: str
    stop_requested: bool
