import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.config import settings
from docplus.core.security import (
    ADMIN_SUBJECT,
    Role,
    create_access_token,
    hash_password,
    verify_admin_credentials,
    verify_password,
)
from docplus.models.doctor import Doctor
from docplus.models.user import Address, User, UserCreate, UserPublic, UserUpdate

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        name=data.name,
        email=_normalize_email(data.email),
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        name=user.name,
        email=user.email,
        image=user.image,
        phone=user.phone,
        address=Address(line1=user.address_line1, line2=user.address_line2),
        gender=user.gender,
        dob=user.dob,
    )


def make_token(subject: str | int, role: Role) -> tuple[str, int]:
    access = create_access_token(subject, role)
    expires_in = settings.access_token_expire_minutes * 60
    return access, expires_in


async def signup_user(
    session: AsyncSession, name: str, email: str, password: str
) -> tuple[User, str, int] | None:
    existing = await get_user_by_email(session, email)
    if existing:
        return None
    user = await create_user(session, UserCreate(name=name, email=email, password=password))
    logger.info("Registered patient user_id=%s", user.id)
    access, expires_in = make_token(user.id, Role.patient)
    return user, access, expires_in


async def login_user(
    session: AsyncSession, email: str, password: str
) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    access, expires_in = make_token(user.id, Role.patient)
    return user, access, expires_in


async def login_doctor(
    session: AsyncSession, email: str, password: str
) -> tuple[Doctor, str, int] | None:
    result = await session.execute(select(Doctor).where(Doctor.email == _normalize_email(email)))
    doctor = result.scalar_one_or_none()
    if not doctor or not verify_password(password, doctor.hashed_password):
        return None
    access, expires_in = make_token(doctor.id, Role.doctor)
    return doctor, access, expires_in


def login_admin(email: str, password: str) -> tuple[str, int] | None:
    if not verify_admin_credentials(email.strip(), password):
        return None
    return make_token(ADMIN_SUBJECT, Role.admin)


async def update_user_profile(session: AsyncSession, user: User, data: UserUpdate) -> User:
    if data.name is not None:
        user.name = data.name
    if data.phone is not None:
        user.phone = data.phone
    if data.gender is not None:
        user.gender = data.gender
    if data.dob is not None:
        user.dob = data.dob
    if data.image is not None:
        user.image = data.image
    if data.address is not None:
        user.address_line1 = data.address.line1
        user.address_line2 = data.address.line2
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user
