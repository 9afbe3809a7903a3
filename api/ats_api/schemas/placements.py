from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel

PlacementStatus = Literal["hired", "active", "completed", "failed", "cancelled"]


class PlacementOut(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    application_id: str | None = None
    status: str
    start_date: date | None = None
    salary: float | None = None
    fee_percentage: float | None = None
    notes: str | None = None
    candidate: dict[str, Any] | None = None
    job: dict[str, Any] | None = None
    application: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class PlacementCreateRequest(BaseModel):
    candidate_id: str | None = None
    job_id: str | None = None
    application_id: str | None = None
    status: PlacementStatus | None = None
    start_date: date | None = None
    salary: float | None = None
    fee_percentage: float | None = None
    notes: str | None = None


class PlacementUpdateRequest(BaseModel):
    status: PlacementStatus | None = None
    start_date: date | None = None
    salary: float | None = None
    fee_percentage: float | None = None
    notes: str | None = None
