from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class JobPreScreenQuestionOut(BaseModel):
    id: str
    job_id: str
    question: str
    question_text: str
    question_type: str
    options: list[str] | None = None
    is_required: bool = False
    sort_order: int
    created_at: datetime
    updated_at: datetime


class JobPreScreenQuestionCreateRequest(BaseModel):
    job_id: str | None = None
    question: str | None = None
    question_type: str | None = None
    options: list[str] | None = None
    is_required: bool | None = None
    sort_order: int | None = None


class JobPreScreenQuestionUpdateRequest(BaseModel):
    question: str | None = None
    question_type: str | None = None
    options: list[str] | None = None
    is_required: bool | None = None
    sort_order: int | None = None


class JobPreScreenQuestionBulkReplaceRequest(BaseModel):
    questions: Any = Field(default=None)
