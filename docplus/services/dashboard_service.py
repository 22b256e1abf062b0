from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.config import settings
from docplus.models.appointment import Appointment, AppointmentStatus
from docplus.models.doctor import Doctor
from docplus.models.user import User
from docplus.services.appointment_service import (
    list_all_appointments_with_parties,
    list_appointments_for_doctor,
)

_EARNING_STATUSES = (AppointmentStatus.paid, AppointmentStatus.completed)


async def _count(session: AsyncSession, stmt) -> int:
    result = await session.execute(stmt)
    return int(result.scalar_one() or 0)


async def doctor_dashboard(session: AsyncSession, doctor_id: int) -> dict:
    earnings = await session.execute(
        select(func.coalesce(func.sum(Appointment.amount), 0)).where(
            Appointment.doctor_id == doctor_id,
            Appointment.status.in_(_EARNING_STATUSES),
        )
    )
    appointments = await _count(
        session, select(func.count(Appointment.id)).where(Appointment.doctor_id == doctor_id)
    )
    patients = await _count(
        session,
        select(func.count(func.distinct(Appointment.user_id))).where(Appointment.doctor_id == doctor_id),
    )
    latest = await list_appointments_for_doctor(session, doctor_id, limit=settings.latest_appointments_limit)
    return {
        "earnings": float(earnings.scalar_one() or 0),
        "appointments": appointments,
        "patients": patients,
        "latest_appointments": latest,
    }


async def admin_dashboard(session: AsyncSession) -> dict:
    return {
        "doctors": await _count(session, select(func.count(Doctor.id))),
        "appointments": await _count(session, select(func.count(Appointment.id))),
        "patients": await _count(session, select(func.count(User.id))),
        "latest_appointments": await list_all_appointments_with_parties(
            session, limit=settings.latest_appointments_limit
        ),
    }
