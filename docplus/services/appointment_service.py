from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.errors import NotFoundError
from docplus.models.appointment import (
    Appointment,
    AppointmentDetail,
    AppointmentPublic,
    AppointmentStatus,
    PartySummary,
)
from docplus.models.doctor import Doctor
from docplus.models.user import User


def to_public(a: Appointment) -> AppointmentPublic:
    """Public shape; the legacy boolean flags are derived from the single status."""
    status = AppointmentStatus(a.status)
    return AppointmentPublic(
        id=a.id,
        user_id=a.user_id,
        doctor_id=a.doctor_id,
        slot_date=a.slot_date,
        slot_time=a.slot_time,
        amount=a.amount,
        status=status,
        cancelled=status == AppointmentStatus.cancelled,
        payment=status in (AppointmentStatus.paid, AppointmentStatus.completed),
        is_completed=status == AppointmentStatus.completed,
        created_at=a.created_at,
    )


def to_detail(a: Appointment, user: User | None, doctor: Doctor | None) -> AppointmentDetail:
    return AppointmentDetail(
        **to_public(a).model_dump(),
        user=PartySummary(id=user.id, name=user.name, email=user.email, image=user.image) if user else None,
        doctor=PartySummary(id=doctor.id, name=doctor.name, email=doctor.email, image=doctor.image)
        if doctor
        else None,
        speciality=doctor.speciality if doctor else None,
    )


async def get_appointment(session: AsyncSession, appointment_id: int) -> Appointment | None:
    result = await session.execute(select(Appointment).where(Appointment.id == appointment_id))
    return result.scalar_one_or_none()


async def require_appointment(session: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def _with_parties():
    return (
        select(Appointment, User, Doctor)
        .outerjoin(User, User.id == Appointment.user_id)
        .outerjoin(Doctor, Doctor.id == Appointment.doctor_id)
        .order_by(Appointment.created_at.desc(), Appointment.id.desc())
    )


async def list_appointments_for_user(session: AsyncSession, user_id: int) -> list[AppointmentDetail]:
    result = await session.execute(_with_parties().where(Appointment.user_id == user_id))
    return [to_detail(a, u, d) for a, u, d in result.all()]


async def list_appointments_for_doctor(
    session: AsyncSession, doctor_id: int, limit: int | None = None
) -> list[AppointmentDetail]:
    q = _with_parties().where(Appointment.doctor_id == doctor_id)
    if limit:
        q = q.limit(limit)
    result = await session.execute(q)
    return [to_detail(a, u, d) for a, u, d in result.all()]


async def list_all_appointments_with_parties(
    session: AsyncSession, limit: int | None = None
) -> list[AppointmentDetail]:
    q = _with_parties()
    if limit:
        q = q.limit(limit)
    result = await session.execute(q)
    return [to_detail(a, u, d) for a, u, d in result.all()]
