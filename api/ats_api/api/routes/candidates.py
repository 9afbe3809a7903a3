from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.candidates import CandidateCreateRequest, CandidateOut, CandidateUpdateRequest
from ats_api.schemas.common import ItemEnvelope, ListEnvelope
from ats_api.services.resources import ResourceService, get_candidate_service

router = APIRouter()


@router.get("", response_model=ListEnvelope[CandidateOut])
async def list_candidates(
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_candidate_service),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    candidate_status: str | None = Query(default=None, alias="status"),
    location: str | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> dict:
    return await service.get_many(
        user,
        {"search": search, "status": candidate_status, "location": location},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{candidate_id}", response_model=ItemEnvelope[CandidateOut])
async def get_candidate(
    candidate_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_candidate_service),
) -> dict:
    return {"data": await service.get_one(candidate_id)}


@router.post("", response_model=ItemEnvelope[CandidateOut], status_code=status.HTTP_201_CREATED)
async def create_candidate(
    payload: CandidateCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_candidate_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True), user.clerk_user_id)}


@router.patch("/{candidate_id}", response_model=ItemEnvelope[CandidateOut])
async def update_candidate(
    candidate_id: str,
    payload: CandidateUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_candidate_service),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    return {"data": await service.update(candidate_id, updates, user.clerk_user_id)}


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidate(
    candidate_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_candidate_service),
) -> Response:
    await service.delete(candidate_id, user.clerk_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
