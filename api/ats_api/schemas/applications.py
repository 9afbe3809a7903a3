from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

ApplicationStatus = Literal["active", "rejected", "hired", "withdrawn"]
ApplicationStage = Literal[
    "draft",
    "ai_review",
    "ai_reviewed",
    "recruiter_request",
    "recruiter_proposed",
    "recruiter_review",
    "screen",
    "submitted",
    "company_review",
    "company_feedback",
    "interview",
    "offer",
    "hired",
    "rejected",
    "withdrawn",
]


class ApplicationOut(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    status: str
    stage: str | None = None
    notes: str | None = None
    candidate: dict[str, Any] | None = None
    job: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationCreateRequest(BaseModel):
    candidate_id: str | None = None
    job_id: str | None = None
    status: ApplicationStatus | None = None
    stage: ApplicationStage | None = None
    notes: str | None = None


class ApplicationUpdateRequest(BaseModel):
    status: ApplicationStatus | None = None
    stage: ApplicationStage | None = None
    notes: str | None = None
