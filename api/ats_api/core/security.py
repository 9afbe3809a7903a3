from fastapi import Depends, HTTPException, Request, status

from ats_api.core.auth import UserContext
from ats_api.core.config import Settings, get_settings


def read_user_context(request: Request, header_name: str) -> UserContext:
    raw = request.headers.get(header_name)
    clerk_user_id = raw.strip() if raw else ""
    if not clerk_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"missing user context: {header_name} header is required",
        )
    return UserContext(clerk_user_id=clerk_user_id)


async def require_user_context(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> UserContext:
    return read_user_context(request, settings.user_id_header)
