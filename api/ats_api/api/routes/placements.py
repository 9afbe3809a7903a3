from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.common import ItemEnvelope, ListEnvelope
from ats_api.schemas.placements import PlacementCreateRequest, PlacementOut, PlacementUpdateRequest
from ats_api.services.resources import ResourceService, get_placement_service

router = APIRouter()


@router.get("", response_model=ListEnvelope[PlacementOut])
async def list_placements(
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_placement_service),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    placement_status: str | None = Query(default=None, alias="status"),
    job_id: str | None = Query(default=None),
    candidate_id: str | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> dict:
    filters = {
        "search": search,
        "status": placement_status,
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


@router.get("/{placement_id}", response_model=ItemEnvelope[PlacementOut])
async def get_placement(
    placement_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_placement_service),
) -> dict:
    return {"data": await service.get_one(placement_id)}


@router.post("", response_model=ItemEnvelope[PlacementOut], status_code=status.HTTP_201_CREATED)
async def create_placement(
    payload: PlacementCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_placement_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True), user.clerk_user_id)}


@router.patch("/{placement_id}", response_model=ItemEnvelope[PlacementOut])
async def update_placement(
    placement_id: str,
    payload: PlacementUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_placement_service),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    return {"data": await service.update(placement_id, updates, user.clerk_user_id)}


@router.delete("/{placement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_placement(
    placement_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_placement_service),
) -> Response:
    await service.delete(placement_id, user.clerk_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
