from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import bearer_scheme
from safeprep.db.session import get_db
from safeprep.schemas.auth import AuthResponse, SignInRequest, SignOutResponse, SignUpRequest
from safeprep.services.auth_service import sign_in, sign_out, sign_up

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: SignUpRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    return await sign_up(db, email=payload.email, password=payload.password, display_name=payload.display_name)


@router.post("/sign-in", response_model=AuthResponse)
async def login(payload: SignInRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    return await sign_in(db, email=payload.email, password=payload.password)


@router.post("/sign-out", response_model=SignOutResponse)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> SignOutResponse:
    if credentials is not None:
        await sign_out(db, credentials.credentials)
    return SignOutResponse(success=True)
