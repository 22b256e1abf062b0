from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.api.deps import get_current_doctor, get_session
from docplus.api.schemas.appointment import (
    AppointmentActionRequest,
    AvailableSlotsResponse,
    DoctorDashboard,
    SlotInfo,
)
from docplus.api.schemas.auth import LoginRequest, Token
from docplus.core.security import Actor, Role
from docplus.models.appointment import AppointmentDetail, AppointmentPublic
from docplus.models.doctor import Doctor, DoctorProfile, DoctorPublic, DoctorUpdate
from docplus.services import lifecycle_service
from docplus.services.appointment_service import list_appointments_for_doctor, to_public
from docplus.services.auth_service import login_doctor
from docplus.services.dashboard_service import doctor_dashboard
from docplus.services.doctor_service import (
    doctor_to_profile,
    doctor_to_public,
    list_doctors,
    update_doctor_profile,
)
from docplus.services.reservation_service import available_slots
from docplus.services.slot_service import get_booked_slots_by_doctor

router = APIRouter(prefix="/doctor", tags=["doctor"])


@router.get("/list", response_model=list[DoctorPublic])
async def doctor_list(
    speciality: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[DoctorPublic]:
    rows = await list_doctors(session, speciality=speciality)
    return [doctor_to_public(d, booked) for d, booked in rows]


@router.get("/{doctor_id}/slots", response_model=AvailableSlotsResponse)
async def doctor_slots(
    doctor_id: int,
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Every offered time for the date, each flagged available or booked."""
    slots = await available_slots(session, doctor_id, date_param)
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        date=date_param.isoformat(),
        slots=[SlotInfo(time=t, available=avail) for t, avail in slots],
    )


@router.post("/login", response_model=Token)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> Token:
    pair = await login_doctor(session, body.email, body.password)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = pair
    return Token(access_token=access, expires_in=expires_in, role=Role.doctor.value)


@router.get("/appointments", response_model=list[AppointmentDetail])
async def my_appointments(
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> list[AppointmentDetail]:
    return await list_appointments_for_doctor(session, doctor.id)


@router.post("/complete-appointment", response_model=AppointmentPublic)
async def complete_appointment(
    body: AppointmentActionRequest,
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> AppointmentPublic:
    actor = Actor(role=Role.doctor, id=doctor.id)
    appointment = await lifecycle_service.complete(session, body.appointment_id, actor)
    return to_public(appointment)


@router.post("/cancel-appointment", response_model=AppointmentPublic)
async def cancel_appointment(
    body: AppointmentActionRequest,
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> AppointmentPublic:
    actor = Actor(role=Role.doctor, id=doctor.id)
    appointment = await lifecycle_service.cancel(session, body.appointment_id, actor)
    return to_public(appointment)


@router.get("/dashboard", response_model=DoctorDashboard)
async def dashboard(
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> DoctorDashboard:
    return DoctorDashboard(**await doctor_dashboard(session, doctor.id))


@router.get("/profile", response_model=DoctorProfile)
async def profile(
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> DoctorProfile:
    booked = await get_booked_slots_by_doctor(session, [doctor.id])
    return doctor_to_profile(doctor, booked[doctor.id])


@router.post("/update-profile", response_model=DoctorProfile)
async def update_profile(
    body: DoctorUpdate,
    session: AsyncSession = Depends(get_session),
    doctor: Doctor = Depends(get_current_doctor),
) -> DoctorProfile:
    doctor = await update_doctor_profile(session, doctor, body)
    booked = await get_booked_slots_by_doctor(session, [doctor.id])
    return doctor_to_profile(doctor, booked[doctor.id])
