from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.common import CollectionEnvelope, ItemEnvelope
from ats_api.schemas.job_requirements import (
    JobRequirementBulkReplaceRequest,
    JobRequirementCreateRequest,
    JobRequirementOut,
    JobRequirementUpdateRequest,
)
from ats_api.services.job_children import JobRequirementService, get_job_requirement_service

router = APIRouter()


@router.get("", response_model=CollectionEnvelope[JobRequirementOut])
async def list_job_requirements(
    job_id: str | None = Query(default=None),
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> dict:
    return {"data": await service.list(job_id)}


@router.get("/{requirement_id}", response_model=ItemEnvelope[JobRequirementOut])
async def get_job_requirement(
    requirement_id: str,
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> dict:
    return {"data": await service.get_by_id(requirement_id)}


@router.post("", response_model=ItemEnvelope[JobRequirementOut], status_code=status.HTTP_201_CREATED)
async def create_job_requirement(
    payload: JobRequirementCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True))}


@router.patch("/{requirement_id}", response_model=ItemEnvelope[JobRequirementOut])
async def update_job_requirement(
    requirement_id: str,
    payload: JobRequirementUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> dict:
    return {"data": await service.update(requirement_id, payload.model_dump(exclude_unset=True))}


@router.delete("/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job_requirement(
    requirement_id: str,
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> Response:
    await service.delete(requirement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/job/{job_id}/bulk-replace", response_model=CollectionEnvelope[JobRequirementOut])
async def bulk_replace_job_requirements(
    job_id: str,
    payload: JobRequirementBulkReplaceRequest,
    user: UserContext = Depends(require_user_context),
    service: JobRequirementService = Depends(get_job_requirement_service),
) -> dict:
    return {"data": await service.bulk_replace_by_job(job_id, payload.requirements)}
