from datetime import UTC, datetime

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Address(SQLModel):
    line1: str = ""
    line2: str = ""


class UserBase(SQLModel):
    name: str
    email: str = Field(unique=True, index=True)
    image: str = ""
    phone: str = "000000000"
    address_line1: str = ""
    address_line2: str = ""
    gender: str = "Not Selected"
    dob: str = "Not Selected"


class User(UserBase, table=True):
    """A patient account."""

    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime)


class UserCreate(SQLModel):
    name: str
    email: str
    password: str


class UserUpdate(SQLModel):
    name: str | None = None
    phone: str | None = None
    address: Address | None = None
    gender: str | None = None
    dob: str | None = None
    image: str | None = None


class UserPublic(SQLModel):
    id: int
    name: str
    email: str
    image: str
    phone: str
    address: Address
    gender: str
    dob: str
