"""Appointment lifecycle: pending -> paid -> completed, or -> cancelled.

Every state change goes through ``_transition`` so illegal edges (for example
completed -> paid) are rejected. The write is conditional on the status the
caller read, so a concurrent change makes the later writer fail instead of
overwriting it. Repeating a finished ``cancel``, ``complete`` or
``confirm_payment`` is a no-op, so a slot can never be released twice.
"""
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.core.config import settings
from docplus.core.errors import InvalidTransitionError, PaymentVerificationError, UnauthorizedError
from docplus.core.security import Actor, Role
from docplus.models.appointment import Appointment, AppointmentStatus, can_transition
from docplus.models.user import _utc_naive_now
from docplus.services.appointment_service import require_appointment
from docplus.services.payment_service import RazorpayBridge
from docplus.services.slot_service import release_booked_slot

logger = logging.getLogger(__name__)


def _is_owner(appointment: Appointment, actor: Actor) -> bool:
    return actor.role == Role.patient and actor.id == appointment.user_id


def _is_assigned_doctor(appointment: Appointment, actor: Actor) -> bool:
    return actor.role == Role.doctor and actor.id == appointment.doctor_id


async def _transition(
    session: AsyncSession, appointment: Appointment, target: AppointmentStatus, **values
) -> None:
    current = AppointmentStatus(appointment.status)
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot move appointment from {current.value} to {target.value}")
    appointment_id = appointment.id
    result = await session.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == current)
        .values(status=target, updated_at=_utc_naive_now(), **values)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(appointment)
    if result.rowcount != 1:
        logger.warning(
            "Appointment %s changed concurrently: expected %s, found %s",
            appointment_id,
            current.value,
            AppointmentStatus(appointment.status).value,
        )
        raise InvalidTransitionError(
            f"Appointment is now {AppointmentStatus(appointment.status).value}; "
            f"cannot move it to {target.value}"
        )


async def initiate_payment(
    session: AsyncSession, bridge: RazorpayBridge, appointment_id: int, actor: Actor
) -> dict:
    """Create a gateway order for a pending appointment. Does not change its status."""
    appointment = await require_appointment(session, appointment_id)
    if not _is_owner(appointment, actor):
        raise UnauthorizedError()
    status = AppointmentStatus(appointment.status)
    if status != AppointmentStatus.pending:
        raise InvalidTransitionError(f"Appointment is {status.value}; payment is only possible while pending")
    order = await bridge.create_order(appointment.amount, settings.currency, receipt=str(appointment.id))
    logger.info("Payment order %s created for appointment_id=%s", order.get("id"), appointment.id)
    return order


async def confirm_payment(
    session: AsyncSession,
    bridge: RazorpayBridge,
    appointment_id: int,
    order_id: str,
    payment_id: str,
    signature: str,
    actor: Actor,
) -> Appointment:
    appointment = await require_appointment(session, appointment_id)
    if not _is_owner(appointment, actor):
        raise UnauthorizedError()
    status = AppointmentStatus(appointment.status)
    if status == AppointmentStatus.paid:
        return appointment
    if not can_transition(status, AppointmentStatus.paid):
        raise InvalidTransitionError(f"Appointment is {status.value}; it can no longer be paid")
    if not bridge.verify(order_id, payment_id, signature):
        logger.warning("Payment signature mismatch for appointment_id=%s order=%s", appointment.id, order_id)
        raise PaymentVerificationError()
    await _transition(
        session,
        appointment,
        AppointmentStatus.paid,
        payment_order_id=order_id,
        payment_reference=payment_id,
    )
    logger.info("Appointment %s paid (payment %s)", appointment.id, payment_id)
    return appointment


async def complete(session: AsyncSession, appointment_id: int, actor: Actor) -> Appointment:
    appointment = await require_appointment(session, appointment_id)
    if not (actor.is_admin or _is_assigned_doctor(appointment, actor)):
        raise UnauthorizedError()
    status = AppointmentStatus(appointment.status)
    if status == AppointmentStatus.completed:
        return appointment
    if status == AppointmentStatus.pending:
        raise InvalidTransitionError("Appointment must be paid before it can be completed")
    await _transition(session, appointment, AppointmentStatus.completed)
    logger.info("Appointment %s completed", appointment.id)
    return appointment


async def cancel(session: AsyncSession, appointment_id: int, actor: Actor) -> Appointment:
    """Cancel and hand the slot back to the doctor's availability."""
    appointment = await require_appointment(session, appointment_id)
    if not (actor.is_admin or _is_owner(appointment, actor) or _is_assigned_doctor(appointment, actor)):
        raise UnauthorizedError()
    if AppointmentStatus(appointment.status) == AppointmentStatus.cancelled:
        return appointment
    await _transition(session, appointment, AppointmentStatus.cancelled)
    released = await release_booked_slot(session, appointment.id)
    logger.info(
        "Appointment %s cancelled by %s (released %d slot)", appointment.id, actor.role.value, released
    )
    return appointment
