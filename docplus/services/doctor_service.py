import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.errors import NotFoundError, ValidationError
from docplus.core.security import hash_password
from docplus.models.doctor import Doctor, DoctorCreate, DoctorProfile, DoctorPublic, DoctorUpdate
from docplus.models.user import Address
from docplus.services.slot_service import get_booked_slots_by_doctor

logger = logging.getLogger(__name__)


def doctor_to_public(doctor: Doctor, slots_booked: dict[str, list[str]] | None = None) -> DoctorPublic:
    return DoctorPublic(
        id=doctor.id,
        name=doctor.name,
        image=doctor.image,
        speciality=doctor.speciality,
        degree=doctor.degree,
        experience=doctor.experience,
        about=doctor.about,
        fees=doctor.fees,
        available=doctor.available,
        address=Address(line1=doctor.address_line1, line2=doctor.address_line2),
        slots_booked=slots_booked or {},
    )


def doctor_to_profile(doctor: Doctor, slots_booked: dict[str, list[str]] | None = None) -> DoctorProfile:
    public = doctor_to_public(doctor, slots_booked)
    return DoctorProfile(**public.model_dump(), email=doctor.email)


async def get_doctor(session: AsyncSession, doctor_id: int) -> Doctor | None:
    result = await session.execute(select(Doctor).where(Doctor.id == doctor_id))
    return result.scalar_one_or_none()


async def require_doctor(session: AsyncSession, doctor_id: int) -> Doctor:
    doctor = await get_doctor(session, doctor_id)
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


async def list_doctors(
    session: AsyncSession, speciality: str | None = None
) -> list[tuple[Doctor, dict[str, list[str]]]]:
    """All doctors (optionally one speciality) with their booked-slot maps."""
    q = select(Doctor).order_by(Doctor.id)
    if speciality:
        q = q.where(Doctor.speciality == speciality)
    result = await session.execute(q)
    doctors = list(result.scalars().all())
    booked = await get_booked_slots_by_doctor(session, [d.id for d in doctors])
    return [(d, booked[d.id]) for d in doctors]


async def add_doctor(session: AsyncSession, data: DoctorCreate) -> Doctor:
    email = data.email.strip().lower()
    existing = await session.execute(select(Doctor.id).where(Doctor.email == email))
    if existing.first():
        raise ValidationError("A doctor with this email already exists")
    doctor = Doctor(
        name=data.name,
        email=email,
        hashed_password=hash_password(data.password),
        image=data.image,
        speciality=data.speciality,
        degree=data.degree,
        experience=data.experience,
        about=data.about,
        fees=data.fees,
        address_line1=data.address.line1,
        address_line2=data.address.line2,
    )
    session.add(doctor)
    await session.flush()
    await session.refresh(doctor)
    logger.info("Added doctor doctor_id=%s speciality=%s", doctor.id, doctor.speciality)
    return doctor


async def update_doctor_profile(session: AsyncSession, doctor: Doctor, data: DoctorUpdate) -> Doctor:
    # Fee changes apply to future bookings only; existing appointments keep their amount
    if data.fees is not None:
        doctor.fees = data.fees
    if data.address is not None:
        doctor.address_line1 = data.address.line1
        doctor.address_line2 = data.address.line2
    if data.available is not None:
        doctor.available = data.available
    session.add(doctor)
    await session.flush()
    await session.refresh(doctor)
    return doctor


async def toggle_availability(session: AsyncSession, doctor_id: int) -> Doctor:
    doctor = await require_doctor(session, doctor_id)
    doctor.available = not doctor.available
    session.add(doctor)
    await session.flush()
    await session.refresh(doctor)
    logger.info("Doctor %s availability set to %s", doctor.id, doctor.available)
    return doctor
