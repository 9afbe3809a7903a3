from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.common import ItemEnvelope, ListEnvelope
from ats_api.schemas.jobs import JobCreateRequest, JobOut, JobUpdateRequest
from ats_api.services.resources import ResourceService, get_job_service

router = APIRouter()


@router.get("", response_model=ListEnvelope[JobOut])
async def list_jobs(
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_job_service),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    job_status: str | None = Query(default=None, alias="status"),
    location: str | None = Query(default=None),
    employment_type: str | None = Query(default=None),
    company_id: str | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> dict:
    filters = {
        "search": search,
        "status": job_status,
        "location": location,
        "employment_type": employment_type,
        "company_id": company_id,
    }
    return await service.get_many(
        user,
        filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{job_id}", response_model=ItemEnvelope[JobOut])
async def get_job(
    job_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_job_service),
) -> dict:
    return {"data": await service.get_one(job_id)}


@router.post("", response_model=ItemEnvelope[JobOut], status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_job_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True), user.clerk_user_id)}


@router.patch("/{job_id}", response_model=ItemEnvelope[JobOut])
async def update_job(
    job_id: str,
    payload: JobUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_job_service),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    return {"data": await service.update(job_id, updates, user.clerk_user_id)}


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_job_service),
) -> Response:
    await service.delete(job_id, user.clerk_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
