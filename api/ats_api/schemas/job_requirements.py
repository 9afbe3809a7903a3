from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class JobRequirementOut(BaseModel):
    id: str
    job_id: str
    requirement_type: str
    description: str
    sort_order: int
    created_at: datetime
    updated_at: datetime


class JobRequirementCreateRequest(BaseModel):
    job_id: str | None = None
    requirement_type: str | None = None
    description: str | None = None
    sort_order: int | None = None


class JobRequirementUpdateRequest(BaseModel):
    requirement_type: str | None = None
    description: str | None = None
    sort_order: int | None = None


class JobRequirementBulkReplaceRequest(BaseModel):
    requirements: Any = Field(default=None)
