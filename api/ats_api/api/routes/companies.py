from fastapi import APIRouter, Depends, Query, Response, status

from ats_api.core.auth import UserContext
from ats_api.core.security import require_user_context
from ats_api.schemas.common import ItemEnvelope, ListEnvelope
from ats_api.schemas.companies import CompanyCreateRequest, CompanyOut, CompanyUpdateRequest
from ats_api.services.resources import ResourceService, get_company_service

router = APIRouter()


@router.get("", response_model=ListEnvelope[CompanyOut])
async def list_companies(
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_company_service),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    company_status: str | None = Query(default=None, alias="status"),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
) -> dict:
    return await service.get_many(
        user,
        {"search": search, "status": company_status},
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{company_id}", response_model=ItemEnvelope[CompanyOut])
async def get_company(
    company_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_company_service),
) -> dict:
    return {"data": await service.get_one(company_id)}


@router.post("", response_model=ItemEnvelope[CompanyOut], status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_company_service),
) -> dict:
    return {"data": await service.create(payload.model_dump(exclude_unset=True), user.clerk_user_id)}


@router.patch("/{company_id}", response_model=ItemEnvelope[CompanyOut])
async def update_company(
    company_id: str,
    payload: CompanyUpdateRequest,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_company_service),
) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    return {"data": await service.update(company_id, updates, user.clerk_user_id)}


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: str,
    user: UserContext = Depends(require_user_context),
    service: ResourceService = Depends(get_company_service),
) -> Response:
    await service.delete(company_id, user.clerk_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
