import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.errors import NotFoundError, SlotTakenError, UnavailableError
from docplus.models.appointment import Appointment, AppointmentStatus
from docplus.services.auth_service import get_user
from docplus.services.doctor_service import require_doctor
from docplus.services.slot_service import (
    add_booked_slot,
    get_available_slots_for_date,
    is_slot_booked,
    validate_slot,
)

logger = logging.getLogger(__name__)


async def reserve(
    session: AsyncSession,
    doctor_id: int,
    slot_date: date | str,
    slot_time: str,
    patient_id: int,
) -> Appointment:
    """Book a doctor's slot for a patient.

    The appointment row and the booked-slot row are written in the caller's
    transaction; the booked_slots unique index rejects a concurrent duplicate,
    which surfaces as SlotTakenError and leaves the transaction to be rolled back.
    """
    slot_date_str, slot_label = validate_slot(slot_date, slot_time)
    doctor = await require_doctor(session, doctor_id)
    if not doctor.available:
        raise UnavailableError("Doctor not available")
    patient = await get_user(session, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    if await is_slot_booked(session, doctor.id, slot_date_str, slot_label):
        raise SlotTakenError("Slot not available")

    # A failed flush expires every loaded instance, so keep plain ids for the error path
    booking_doctor_id, patient_id = doctor.id, patient.id
    appointment = Appointment(
        user_id=patient_id,
        doctor_id=booking_doctor_id,
        slot_date=slot_date_str,
        slot_time=slot_label,
        amount=doctor.fees,
        status=AppointmentStatus.pending,
    )
    session.add(appointment)
    try:
        await session.flush()
        await add_booked_slot(session, booking_doctor_id, slot_date_str, slot_label, appointment.id)
    except IntegrityError as e:
        logger.warning(
            "Concurrent booking lost: doctor_id=%s date=%s time=%s", booking_doctor_id, slot_date_str, slot_label
        )
        raise SlotTakenError("Slot not available") from e
    await session.refresh(appointment)
    logger.info(
        "Booked appointment_id=%s doctor_id=%s user_id=%s %s %s",
        appointment.id,
        booking_doctor_id,
        patient_id,
        slot_date_str,
        slot_label,
    )
    return appointment


async def available_slots(session: AsyncSession, doctor_id: int, d: date) -> list[tuple[str, bool]]:
    await require_doctor(session, doctor_id)
    return await get_available_slots_for_date(session, doctor_id, d)
