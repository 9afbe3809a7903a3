from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.applications import ApplicationCreateRequest, ApplicationOut, ApplicationUpdateRequest
from ats_api.schemas.common import ItemEnvelope, ListEnvelope
from ats_api.services.resources import ResourceService, get_application_service

router = APIRouter()


@router.get("", response_model=ListEnvelope[ApplicationOut])
async def list_applications(
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_application_service),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    application_status: str | None = Query(default=None, alias="status"),
    stage: str | None = Query(default=None),
    job_id: str | None = Query(default=None),
    candidate_id: str | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> dict:
    filters = {
        "search": search,
        "status": application_status,
        "stage": stage,
        "job_id": job_id,
        "candidate_id": candidate_id,
    }
    return await service.get_many(
        user,
        filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{application_id}", response_model=ItemEnvelope[ApplicationOut])
async def get_application(
    application_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_application_service),
) -> dict:
    return {"data": await service.get_one(application_id)}


@router.post("", response_model=ItemEnvelope[ApplicationOut], status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_application_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True), user.clerk_user_id)}


@router.patch("/{application_id}", response_model=ItemEnvelope[ApplicationOut])
async def update_application(
    application_id: str,
    payload: ApplicationUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_application_service),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    return {"data": await service.update(application_id, updates, user.clerk_user_id)}


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_application_service),
) -> Response:
    await service.delete(application_id, user.clerk_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
