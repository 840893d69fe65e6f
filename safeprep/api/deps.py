from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.db.session import get_db
from safeprep.models import Profile
from safeprep.services.auth_service import SessionIdentity, authenticate

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> SessionIdentity:
    if credentials is None:
        raise ApiError(status_code=401, code=ErrorCode.UNAUTHORIZED, message="Missing authorization token")
    return await authenticate(db, credentials.credentials)


async def get_current_user(identity: SessionIdentity = Depends(get_current_session)) -> Profile:
    return identity.user


CurrentUser = Annotated[Profile, Depends(get_current_user)]
