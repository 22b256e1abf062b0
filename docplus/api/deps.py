from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.db import get_session
from docplus.core.security import Actor, Role, decode_access_token
from docplus.models.doctor import Doctor
from docplus.models.user import User

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def token_header(token: str | None = Header(default=None)) -> str | None:
    """Legacy `token` header sent by the mobile and web clients."""
    return token


async def get_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    legacy_token: str | None = Depends(token_header),
) -> Actor:
    if credentials and credentials.scheme.lower() == "bearer":
        raw = credentials.credentials
    elif legacy_token:
        raw = legacy_token
    else:
        raise _unauthorized("Missing or invalid authorization header")
    subject, role = decode_access_token(raw)
    if not subject or not role:
        raise _unauthorized("Invalid or expired token")
    if role == Role.admin:
        return Actor(role=role)
    try:
        return Actor(role=role, id=int(subject))
    except ValueError:
        raise _unauthorized("Invalid token")


async def get_current_user(
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
) -> User:
    if actor.role != Role.patient:
        raise _unauthorized("Patient login required")
    result = await session.execute(select(User).where(User.id == actor.id))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthorized("User not found")
    return user


async def get_current_doctor(
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    if actor.role != Role.doctor:
        raise _unauthorized("Doctor login required")
    result = await session.execute(select(Doctor).where(Doctor.id == actor.id))
    doctor = result.scalar_one_or_none()
    if not doctor:
        raise _unauthorized("Doctor not found")
    return doctor


async def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise _unauthorized("Admin login required")
    return actor
