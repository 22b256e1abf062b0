import hmac
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from jose import JWTError, jwt
from passlib.context import CryptContext

from docplus.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

ADMIN_SUBJECT = "admin"


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"
    admin = "admin"


@dataclass(frozen=True)
class Actor:
    """Who is calling: a patient (users.id), a doctor (doctors.id) or the admin (id None)."""

    role: Role
    id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def verify_admin_credentials(email: str, password: str) -> bool:
    if not settings.admin_enabled:
        return False
    email_ok = hmac.compare_digest(email.lower().encode(), settings.admin_email.lower().encode())
    password_ok = hmac.compare_digest(password.encode(), settings.admin_password.encode())
    return email_ok and password_ok


def create_access_token(subject: str | int, role: Role) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "role": role.value, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> tuple[str | None, Role | None]:
    """Returns (subject, role) or (None, None)."""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access":
            return None, None
        sub = payload.get("sub")
        role = Role(payload.get("role"))
        return (str(sub), role) if sub else (None, None)
    except (JWTError, ValueError):
        return None, None
