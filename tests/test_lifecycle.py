from datetime import date

import pytest

from docplus.core.errors import InvalidTransitionError, PaymentVerificationError, UnauthorizedError
from docplus.core.security import Actor, Role
from docplus.models.appointment import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus, can_transition
from docplus.services import lifecycle_service
from docplus.services.reservation_service import reserve
from docplus.services.slot_service import get_booked_times

SLOT_DATE = date(2024, 1, 10)
ADMIN = Actor(role=Role.admin)


def as_patient(user) -> Actor:
    return Actor(role=Role.patient, id=user.id)


def as_doctor(doctor) -> Actor:
    return Actor(role=Role.doctor, id=doctor.id)


@pytest.fixture
async def appointment(session, doctor, patient):
    return await reserve(session, doctor.id, SLOT_DATE, "10:00 AM", patient.id)


async def pay(session, bridge, appointment, patient):
    order_id = "order_test"
    payment_id = "pay_test"
    return await lifecycle_service.confirm_payment(
        session,
        bridge,
        appointment.id,
        order_id,
        payment_id,
        bridge.signature_for(order_id, payment_id),
        as_patient(patient),
    )


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self) -> None:
        assert ALLOWED_TRANSITIONS[AppointmentStatus.completed] == frozenset()
        assert ALLOWED_TRANSITIONS[AppointmentStatus.cancelled] == frozenset()

    @pytest.mark.parametrize(
        "current,target",
        [
            (AppointmentStatus.pending, AppointmentStatus.paid),
            (AppointmentStatus.pending, AppointmentStatus.cancelled),
            (AppointmentStatus.paid, AppointmentStatus.completed),
            (AppointmentStatus.paid, AppointmentStatus.cancelled),
        ],
    )
    def test_legal_edges(self, current, target) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (AppointmentStatus.pending, AppointmentStatus.completed),
            (AppointmentStatus.completed, AppointmentStatus.paid),
            (AppointmentStatus.completed, AppointmentStatus.cancelled),
            (AppointmentStatus.cancelled, AppointmentStatus.pending),
            (AppointmentStatus.paid, AppointmentStatus.pending),
        ],
    )
    def test_illegal_edges(self, current, target) -> None:
        assert not can_transition(current, target)


class TestCancel:
    async def test_releases_slot(self, session, doctor, patient, appointment, live_slot_times) -> None:
        cancelled = await lifecycle_service.cancel(session, appointment.id, as_patient(patient))

        assert cancelled.status == AppointmentStatus.cancelled
        assert await get_booked_times(session, doctor.id, "2024-01-10") == set()
        assert await live_slot_times(session, doctor.id, "2024-01-10") == set()

    async def test_twice_is_a_noop(
        self, session, doctor, patient, other_patient, appointment, live_slot_times
    ) -> None:
        await lifecycle_service.cancel(session, appointment.id, as_patient(patient))
        rebooked = await reserve(session, doctor.id, SLOT_DATE, "10:00 AM", other_patient.id)

        again = await lifecycle_service.cancel(session, appointment.id, as_patient(patient))

        assert again.status == AppointmentStatus.cancelled
        # The new booking of the same slot must survive the repeated cancel
        assert await get_booked_times(session, doctor.id, "2024-01-10") == {"10:00 AM"}
        assert await live_slot_times(session, doctor.id, "2024-01-10") == {"10:00 AM"}
        assert rebooked.status == AppointmentStatus.pending

    async def test_paid_appointment_can_be_cancelled(self, session, bridge, doctor, patient, appointment) -> None:
        await pay(session, bridge, appointment, patient)
        cancelled = await lifecycle_service.cancel(session, appointment.id, as_doctor(doctor))
        assert cancelled.status == AppointmentStatus.cancelled

    async def test_completed_appointment_cannot_be_cancelled(
        self, session, bridge, doctor, patient, appointment
    ) -> None:
        await pay(session, bridge, appointment, patient)
        await lifecycle_service.complete(session, appointment.id, as_doctor(doctor))

        with pytest.raises(InvalidTransitionError):
            await lifecycle_service.cancel(session, appointment.id, ADMIN)
        assert await get_booked_times(session, doctor.id, "2024-01-10") == {"10:00 AM"}

    async def test_admin_and_assigned_doctor_may_cancel(self, session, doctor, patient, appointment) -> None:
        await lifecycle_service.cancel(session, appointment.id, ADMIN)
        other = await reserve(session, doctor.id, SLOT_DATE, "11:00 AM", patient.id)
        result = await lifecycle_service.cancel(session, other.id, as_doctor(doctor))
        assert result.status == AppointmentStatus.cancelled

    async def test_strangers_are_rejected(self, session, other_doctor, other_patient, appointment) -> None:
        with pytest.raises(UnauthorizedError):
            await lifecycle_service.cancel(session, appointment.id, as_patient(other_patient))
        with pytest.raises(UnauthorizedError):
            await lifecycle_service.cancel(session, appointment.id, as_doctor(other_doctor))
        assert appointment.status == AppointmentStatus.pending


class TestComplete:
    async def test_unpaid_appointment_cannot_be_completed(self, session, doctor, appointment) -> None:
        with pytest.raises(InvalidTransitionError, match="paid"):
            await lifecycle_service.complete(session, appointment.id, as_doctor(doctor))
        assert appointment.status == AppointmentStatus.pending

    async def test_paid_appointment_completes_once(self, session, bridge, doctor, patient, appointment) -> None:
        await pay(session, bridge, appointment, patient)

        done = await lifecycle_service.complete(session, appointment.id, as_doctor(doctor))
        again = await lifecycle_service.complete(session, appointment.id, ADMIN)

        assert done.status == AppointmentStatus.completed
        assert again.status == AppointmentStatus.completed
        # Completed visits keep their slot
        assert await get_booked_times(session, doctor.id, "2024-01-10") == {"10:00 AM"}

    async def test_cancelled_appointment_cannot_be_completed(self, session, patient, appointment) -> None:
        await lifecycle_service.cancel(session, appointment.id, as_patient(patient))
        with pytest.raises(InvalidTransitionError):
            await lifecycle_service.complete(session, appointment.id, ADMIN)

    async def test_patient_and_other_doctor_cannot_complete(
        self, session, bridge, other_doctor, patient, appointment
    ) -> None:
        await pay(session, bridge, appointment, patient)
        with pytest.raises(UnauthorizedError):
            await lifecycle_service.complete(session, appointment.id, as_patient(patient))
        with pytest.raises(UnauthorizedError):
            await lifecycle_service.complete(session, appointment.id, as_doctor(other_doctor))


class TestPayment:
    async def test_initiate_creates_order_without_changing_state(
        self, session, bridge, razorpay, patient, appointment
    ) -> None:
        order = await lifecycle_service.initiate_payment(session, bridge, appointment.id, as_patient(patient))

        assert order["amount"] == 50000
        assert order["currency"] == "INR"
        assert order["receipt"] == str(appointment.id)
        assert appointment.status == AppointmentStatus.pending
        assert len(razorpay.orders) == 1

    async def test_initiate_only_for_pending(self, session, bridge, patient, appointment) -> None:
        await lifecycle_service.cancel(session, appointment.id, as_patient(patient))
        with pytest.raises(InvalidTransitionError):
            await lifecycle_service.initiate_payment(session, bridge, appointment.id, as_patient(patient))

    async def test_initiate_by_other_patient_is_rejected(self, session, bridge, other_patient, appointment) -> None:
        with pytest.raises(UnauthorizedError):
            await lifecycle_service.initiate_payment(session, bridge, appointment.id, as_patient(other_patient))

    async def test_bad_signature_leaves_state_unchanged(self, session, bridge, patient, appointment) -> None:
        with pytest.raises(PaymentVerificationError):
            await lifecycle_service.confirm_payment(
                session, bridge, appointment.id, "order_x", "pay_x", "forged", as_patient(patient)
            )
        assert appointment.status == AppointmentStatus.pending
        assert appointment.payment_reference is None

    async def test_valid_signature_marks_paid_and_is_idempotent(
        self, session, bridge, patient, appointment
    ) -> None:
        paid = await pay(session, bridge, appointment, patient)
        assert paid.status == AppointmentStatus.paid
        assert paid.payment_reference == "pay_test"

        again = await pay(session, bridge, appointment, patient)
        assert again.status == AppointmentStatus.paid

    async def test_cancelled_appointment_cannot_be_paid(self, session, bridge, patient, appointment) -> None:
        await lifecycle_service.cancel(session, appointment.id, as_patient(patient))
        with pytest.raises(InvalidTransitionError):
            await pay(session, bridge, appointment, patient)


class TestConcurrentTransitions:
    async def committed_booking(self, session_maker, doctor, patient) -> Appointment:
        async with session_maker() as setup:
            booked = await reserve(setup, doctor.id, SLOT_DATE, "10:00 AM", patient.id)
            await setup.commit()
        return booked

    async def test_payment_on_a_stale_read_cannot_undo_a_cancel(
        self, session_maker, bridge, doctor, patient, assert_slots_match_appointments
    ) -> None:
        booked = await self.committed_booking(session_maker, doctor, patient)

        async with session_maker() as paying:
            stale = await paying.get(Appointment, booked.id)
            assert stale.status == AppointmentStatus.pending

            async with session_maker() as cancelling:
                await lifecycle_service.cancel(cancelling, booked.id, as_patient(patient))
                await cancelling.commit()

            with pytest.raises(InvalidTransitionError, match="cancelled"):
                await pay(paying, bridge, stale, patient)
            await paying.rollback()

        async with session_maker() as check:
            final = await check.get(Appointment, booked.id)
            assert final.status == AppointmentStatus.cancelled
            assert final.payment_reference is None
            await assert_slots_match_appointments(check, doctor.id, "2024-01-10")

    async def test_cancel_on_a_stale_read_keeps_the_paid_booking(
        self, session_maker, bridge, doctor, patient, assert_slots_match_appointments
    ) -> None:
        booked = await self.committed_booking(session_maker, doctor, patient)

        async with session_maker() as cancelling:
            stale = await cancelling.get(Appointment, booked.id)

            async with session_maker() as paying:
                await pay(paying, bridge, booked, patient)
                await paying.commit()

            with pytest.raises(InvalidTransitionError):
                await lifecycle_service.cancel(cancelling, stale.id, ADMIN)
            await cancelling.rollback()

        async with session_maker() as check:
            final = await check.get(Appointment, booked.id)
            assert final.status == AppointmentStatus.paid
            assert await get_booked_times(check, doctor.id, "2024-01-10") == {"10:00 AM"}
            await assert_slots_match_appointments(check, doctor.id, "2024-01-10")
