"""Booked-slot bookkeeping for the doctor aggregate.

``add_booked_slot`` and ``release_booked_slot`` are the only writers of the
``booked_slots`` table; they are called by the reservation and lifecycle services.
"""
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.config import settings
from docplus.core.errors import ValidationError
from docplus.models.appointment import BookedSlot


def offered_slot_times() -> list[str]:
    """Fixed daily set of bookable time labels, in display order."""
    return settings.slot_times_list


def validate_slot(slot_date: date | str, slot_time: str) -> tuple[str, str]:
    """Normalise a (date, time-label) pair; returns (YYYY-MM-DD, label)."""
    if isinstance(slot_date, str):
        try:
            slot_date = date.fromisoformat(slot_date)
        except ValueError as e:
            raise ValidationError("slot_date must be formatted YYYY-MM-DD") from e
    label = (slot_time or "").strip()
    if label not in offered_slot_times():
        raise ValidationError(f"slot_time must be one of: {', '.join(offered_slot_times())}")
    return slot_date.isoformat(), label


async def get_booked_times(session: AsyncSession, doctor_id: int, slot_date: str) -> set[str]:
    result = await session.execute(
        select(BookedSlot.slot_time).where(
            BookedSlot.doctor_id == doctor_id,
            BookedSlot.slot_date == slot_date,
        )
    )
    return {row[0] for row in result.all()}


async def is_slot_booked(session: AsyncSession, doctor_id: int, slot_date: str, slot_time: str) -> bool:
    result = await session.execute(
        select(BookedSlot.id)
        .where(
            BookedSlot.doctor_id == doctor_id,
            BookedSlot.slot_date == slot_date,
            BookedSlot.slot_time == slot_time,
        )
        .limit(1)
    )
    return result.first() is not None


async def get_booked_slots_by_doctor(
    session: AsyncSession, doctor_ids: Iterable[int]
) -> dict[int, dict[str, list[str]]]:
    """Returns {doctor_id: {slot_date: [slot_time, ...]}} for the given doctors."""
    ids = list(doctor_ids)
    out: dict[int, dict[str, list[str]]] = {doctor_id: {} for doctor_id in ids}
    if not ids:
        return out
    result = await session.execute(
        select(BookedSlot.doctor_id, BookedSlot.slot_date, BookedSlot.slot_time)
        .where(BookedSlot.doctor_id.in_(ids))
        .order_by(BookedSlot.slot_date, BookedSlot.id)
    )
    grouped: dict[int, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
    for doctor_id, slot_date, slot_time in result.all():
        grouped[doctor_id][slot_date].append(slot_time)
    for doctor_id, by_date in grouped.items():
        out[doctor_id] = dict(by_date)
    return out


async def get_available_slots_for_date(
    session: AsyncSession, doctor_id: int, d: date
) -> list[tuple[str, bool]]:
    """Returns list of (slot_time, available) for every offered time on the given date."""
    booked = await get_booked_times(session, doctor_id, d.isoformat())
    return [(t, t not in booked) for t in offered_slot_times()]


async def add_booked_slot(
    session: AsyncSession, doctor_id: int, slot_date: str, slot_time: str, appointment_id: int
) -> BookedSlot:
    """Insert the slot row; a duplicate raises IntegrityError on flush."""
    slot = BookedSlot(
        doctor_id=doctor_id,
        slot_date=slot_date,
        slot_time=slot_time,
        appointment_id=appointment_id,
    )
    session.add(slot)
    await session.flush()
    return slot


async def release_booked_slot(session: AsyncSession, appointment_id: int) -> int:
    """Delete the slot held by an appointment. Returns rows removed (0 or 1)."""
    result = await session.execute(delete(BookedSlot).where(BookedSlot.appointment_id == appointment_id))
    await session.flush()
    return result.rowcount or 0
