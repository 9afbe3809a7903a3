from datetime import datetime
from typing import Literal

from pydantic import BaseModel

CompanyStatus = Literal["active", "inactive"]


class CompanyOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    website: str | None = None
    status: str
    identity_organization_id: str | None = None
    created_at: datetime
    updated_at: datetime


class CompanyCreateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    website: str | None = None
    status: CompanyStatus | None = None
    identity_organization_id: str | None = None


class CompanyUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    website: str | None = None
    status: CompanyStatus | None = None
