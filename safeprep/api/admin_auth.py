from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import get_current_user
from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.db.session import get_db
from safeprep.models import Profile
from safeprep.schemas.auth import AdministratorRole
from safeprep.services.auth_service import resolve_role


async def require_admin(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    role = await resolve_role(db, current_user.id)
    if not isinstance(role, AdministratorRole):
        raise ApiError(
            status_code=403,
            code=ErrorCode.ADMIN_ACCESS_DENIED,
            message="You don't have permission to access the admin panel",
        )
    return current_user


CurrentAdmin = Annotated[Profile, Depends(require_admin)]
