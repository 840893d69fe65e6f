import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.core.config import get_settings
from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.core.security import (
    as_utc,
    create_access_token,
    decode_access_token,
    hash_password,
    now_utc,
    verify_password,
)
from safeprep.models import AdminUser, AuthSession, Profile
from safeprep.schemas.auth import AdministratorRole, AuthResponse, Role, StandardRole, UserOut

logger = logging.getLogger(__name__)


@dataclass
class SessionIdentity:
    user: Profile
    session: AuthSession


def user_out(user: Profile) -> UserOut:
    return UserOut(id=str(user.id), email=user.email, display_name=user.display_name)


async def resolve_role(db: AsyncSession, user_id: uuid.UUID) -> Role:
    """Look the identity up in the administrator registry.

    A missing row means a standard identity. Called after every session
    establishment, never cached across sessions.
    """
    row = (await db.execute(select(AdminUser).where(AdminUser.user_id == user_id))).scalars().first()
    if row is None:
        return StandardRole()
    logger.debug("identity %s resolved as administrator (%s)", user_id, row.admin_level)
    return AdministratorRole(admin_level=row.admin_level, permissions=row.permissions or {})


async def _issue_session(db: AsyncSession, user: Profile) -> AuthResponse:
    settings = get_settings()
    session = AuthSession(
        user_id=user.id,
        expires_at=now_utc() + timedelta(seconds=settings.access_token_expire_seconds),
    )
    db.add(session)
    await db.commit()

    # The session row is committed before the registry lookup runs.
    role = await resolve_role(db, user.id)
    access_token = create_access_token(str(user.id), str(session.id), extra={"email": user.email})
    return AuthResponse(
        user=user_out(user),
        access_token=access_token,
        access_token_expires_in=settings.access_token_expire_seconds,
        role=role,
    )


async def sign_up(db: AsyncSession, email: str, password: str, display_name: str | None = None) -> AuthResponse:
    email = email.lower().strip()

    exists = (await db.execute(select(Profile.id).where(Profile.email == email))).scalar_one_or_none()
    if exists:
        raise ApiError(status_code=400, code=ErrorCode.EMAIL_ALREADY_REGISTERED, message="Email already registered")

    user = Profile(
        email=email,
        display_name=(display_name or "").strip() or email.split("@")[0],
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise ApiError(status_code=400, code=ErrorCode.EMAIL_ALREADY_REGISTERED, message="Email already registered") from exc

    logger.info("registered identity %s", user.id)
    return await _issue_session(db, user)


async def sign_in(db: AsyncSession, email: str, password: str) -> AuthResponse:
    email = email.lower().strip()
    user = (await db.execute(select(Profile).where(Profile.email == email))).scalars().first()
    if not user or not verify_password(password, user.password_hash):
        raise ApiError(status_code=401, code=ErrorCode.INVALID_CREDENTIALS, message="Invalid email or password")
    return await _issue_session(db, user)


async def authenticate(db: AsyncSession, token: str) -> SessionIdentity:
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise ApiError(status_code=401, code=ErrorCode.INVALID_TOKEN, message="Invalid or expired token") from exc

    user_id = payload.get("sub")
    session_id = payload.get("sid")
    if payload.get("type") != "access" or not user_id or not session_id:
        raise ApiError(status_code=401, code=ErrorCode.INVALID_TOKEN, message="Invalid token")

    try:
        session = await db.get(AuthSession, uuid.UUID(session_id))
    except ValueError as exc:
        raise ApiError(status_code=401, code=ErrorCode.INVALID_TOKEN, message="Invalid token") from exc
    if not session or str(session.user_id) != user_id:
        raise ApiError(status_code=401, code=ErrorCode.INVALID_TOKEN, message="Invalid token")
    if session.revoked_at is not None or as_utc(session.expires_at) < now_utc():
        raise ApiError(status_code=401, code=ErrorCode.SESSION_REVOKED, message="Session is no longer valid")

    user = await db.get(Profile, session.user_id)
    if not user:
        raise ApiError(status_code=401, code=ErrorCode.INVALID_USER, message="User not found")
    return SessionIdentity(user=user, session=session)


async def sign_out(db: AsyncSession, token: str) -> None:
    try:
        payload = decode_access_token(token)
        session_id = uuid.UUID(str(payload.get("sid")))
    except (jwt.PyJWTError, ValueError):
        return

    session = await db.get(AuthSession, session_id)
    if session and session.revoked_at is None:
        session.revoked_at = now_utc()
        await db.commit()


async def update_profile(db: AsyncSession, user: Profile, display_name: str | None) -> Profile:
    user.display_name = (display_name or "").strip() or None
    await db.commit()
    await db.refresh(user)
    return user
