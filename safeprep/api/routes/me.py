from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import CurrentUser
from safeprep.db.session import get_db
from safeprep.schemas.auth import MeResponse, ProfileUpdateRequest
from safeprep.services.auth_service import resolve_role, update_profile, user_out

router = APIRouter(prefix="/v1", tags=["users"])


@router.get("/me", response_model=MeResponse)
async def me(current_user: CurrentUser, db: AsyncSession = Depends(get_db)) -> MeResponse:
    role = await resolve_role(db, current_user.id)
    return MeResponse(user=user_out(current_user), role=role)


@router.patch("/me", response_model=MeResponse)
async def patch_me(
    payload: ProfileUpdateRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MeResponse:
    user = await update_profile(db, current_user, payload.display_name)
    role = await resolve_role(db, user.id)
    return MeResponse(user=user_out(user), role=role)
