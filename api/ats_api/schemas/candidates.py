from datetime import datetime
from typing import Literal

from pydantic import BaseModel

CandidateStatus = Literal["active", "archived"]


class CandidateOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    location: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class CandidateCreateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    status: CandidateStatus | None = None


class CandidateUpdateRequest(CandidateCreateRequest):
    pass
