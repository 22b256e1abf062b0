from datetime import datetime
from enum import Enum

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from docplus.models.user import _utc_naive_now


class AppointmentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    completed = "completed"
    cancelled = "cancelled"


# Legal edges of the appointment lifecycle; completed and cancelled are terminal.
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.pending: frozenset({AppointmentStatus.paid, AppointmentStatus.cancelled}),
    AppointmentStatus.paid: frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    slot_date: str = Field(index=True)  # YYYY-MM-DD
    slot_time: str
    amount: float  # doctor fees locked at booking time
    status: AppointmentStatus = Field(default=AppointmentStatus.pending, index=True)
    payment_order_id: str | None = None
    payment_reference: str | None = None
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime)


class BookedSlot(SQLModel, table=True):
    """A doctor's reserved (date, time) pair, owned by exactly one live appointment.

    Rows are written only by the slot service; the unique constraint is what makes
    concurrent reservations of the same slot impossible.
    """

    __tablename__ = "booked_slots"
    __table_args__ = (
        UniqueConstraint("doctor_id", "slot_date", "slot_time", name="uq_booked_slots_doctor_date_time"),
    )
    id: int | None = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    slot_date: str
    slot_time: str
    appointment_id: int = Field(foreign_key="appointments.id", unique=True)


class AppointmentPublic(SQLModel):
    id: int
    user_id: int
    doctor_id: int
    slot_date: str
    slot_time: str
    amount: float
    status: AppointmentStatus
    cancelled: bool
    payment: bool
    is_completed: bool
    created_at: datetime


class PartySummary(SQLModel):
    id: int
    name: str
    email: str
    image: str = ""


class AppointmentDetail(AppointmentPublic):
    """Appointment with the patient and doctor it links, for listings and dashboards."""

    user: PartySummary | None = None
    doctor: PartySummary | None = None
    speciality: str | None = None
