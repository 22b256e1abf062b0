
from pydantic import NaiveDatetime, PositiveFloat
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from docplus.models.user import Address, _utc_naive_now


class DoctorBase(SQLModel):
    name: str
    email: str = Field(unique=True, index=True)
    image: str = ""
    speciality: str = Field(index=True)
    degree: str = ""
    experience: str = ""
    about: str = ""
    fees: float
    available: bool = True
    address_line1: str = ""
    address_line2: str = ""


class Doctor(DoctorBase, table=True):
    __tablename__ = "doctors"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime)


class DoctorCreate(SQLModel):
    name: str
    email: str
    password: str
    speciality: str
    degree: str = ""
    experience: str = ""
    about: str = ""
    fees: PositiveFloat
    address: Address = Address()
    image: str = ""


class DoctorUpdate(SQLModel):
    fees: PositiveFloat | None = None
    address: Address | None = None
    available: bool | None = None


class DoctorPublic(SQLModel):
    """Directory entry. ``slots_booked`` maps YYYY-MM-DD to the booked time labels."""

    id: int
    name: str
    image: str
    speciality: str
    degree: str
    experience: str
    about: str
    fees: float
    available: bool
    address: Address
    slots_booked: dict[str, list[str]] = {}


class DoctorProfile(DoctorPublic):
    email: str
