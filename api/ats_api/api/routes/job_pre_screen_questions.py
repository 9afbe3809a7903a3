from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.common import CollectionEnvelope, ItemEnvelope
from ats_api.schemas.pre_screen_questions import (
    JobPreScreenQuestionBulkReplaceRequest,
    JobPreScreenQuestionCreateRequest,
    JobPreScreenQuestionOut,
    JobPreScreenQuestionUpdateRequest,
)
from ats_api.services.job_children import JobPreScreenQuestionService, get_job_pre_screen_question_service

router = APIRouter()


@router.get("", response_model=CollectionEnvelope[JobPreScreenQuestionOut])
async def list_job_pre_screen_questions(
    job_id: str | None = Query(default=None),
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> dict:
    return {"data": await service.list(job_id)}


@router.get("/{question_id}", response_model=ItemEnvelope[JobPreScreenQuestionOut])
async def get_job_pre_screen_question(
    question_id: str,
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> dict:
    return {"data": await service.get_by_id(question_id)}


@router.post("", response_model=ItemEnvelope[JobPreScreenQuestionOut], status_code=status.HTTP_201_CREATED)
async def create_job_pre_screen_question(
    payload: JobPreScreenQuestionCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True))}


@router.patch("/{question_id}", response_model=ItemEnvelope[JobPreScreenQuestionOut])
async def update_job_pre_screen_question(
    question_id: str,
    payload: JobPreScreenQuestionUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> dict:
    return {"data": await service.update(question_id, payload.model_dump(exclude_unset=True))}


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job_pre_screen_question(
    question_id: str,
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> Response:
    await service.delete(question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/job/{job_id}/bulk-replace", response_model=CollectionEnvelope[JobPreScreenQuestionOut])
async def bulk_replace_job_pre_screen_questions(
    job_id: str,
    payload: JobPreScreenQuestionBulkReplaceRequest,
    user: UserContext = Depends(require_user_context),
    service: JobPreScreenQuestionService = Depends(get_job_pre_screen_question_service),
) -> dict:
    return {"data": await service.bulk_replace_by_job(job_id, payload.questions)}
