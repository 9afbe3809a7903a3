from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

JobStatus = Literal["active", "paused", "filled", "closed"]
EmploymentType = Literal["full_time", "part_time", "contract", "temporary"]


class JobOut(BaseModel):
    id: str
    company_id: str
    title: str
    description: str | None = None
    requirements: str | None = None
    responsibilities: str | None = None
    location: str | None = None
    employment_type: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    salary_currency: str | None = None
    status: str
    closed_reason: str | None = None
    company: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class JobCreateRequest(BaseModel):
    company_id: str | None = None
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    responsibilities: str | None = None
    location: str | None = None
    employment_type: EmploymentType | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    salary_currency: str | None = None
    status: JobStatus | None = None


class JobUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    responsibilities: str | None = None
    location: str | None = None
    employment_type: EmploymentType | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    salary_currency: str | None = None
    status: JobStatus | None = None
    closed_reason: str | None = None
