import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.api.deps import get_session, require_admin
from docplus.api.schemas.admin import ChangeAvailabilityRequest
from docplus.api.schemas.appointment import AdminDashboard, AppointmentActionRequest
from docplus.api.schemas.auth import LoginRequest, Token
from docplus.core.security import Actor, Role
from docplus.models.appointment import AppointmentDetail, AppointmentPublic
from docplus.models.doctor import DoctorCreate, DoctorProfile
from docplus.services import lifecycle_service
from docplus.services.appointment_service import list_all_appointments_with_parties, to_public
from docplus.services.auth_service import login_admin
from docplus.services.dashboard_service import admin_dashboard
from docplus.services.doctor_service import add_doctor, doctor_to_profile, list_doctors, toggle_availability
from docplus.services.slot_service import get_booked_slots_by_doctor

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=Token)
async def login(body: LoginRequest) -> Token:
    pair = login_admin(body.email, body.password)
    if not pair:
        logger.warning("Failed admin login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    access, expires_in = pair
    return Token(access_token=access, expires_in=expires_in, role=Role.admin.value)


@router.post("/add-doctor", response_model=DoctorProfile, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    body: DoctorCreate,
    session: AsyncSession = Depends(get_session),
    _: Actor = Depends(require_admin),
) -> DoctorProfile:
    doctor = await add_doctor(session, body)
    return doctor_to_profile(doctor)


@router.get("/all-doctors", response_model=list[DoctorProfile])
async def all_doctors(
    session: AsyncSession = Depends(get_session),
    _: Actor = Depends(require_admin),
) -> list[DoctorProfile]:
    rows = await list_doctors(session)
    return [doctor_to_profile(d, booked) for d, booked in rows]


@router.post("/change-availability", response_model=DoctorProfile)
async def change_availability(
    body: ChangeAvailabilityRequest,
    session: AsyncSession = Depends(get_session),
    _: Actor = Depends(require_admin),
) -> DoctorProfile:
    doctor = await toggle_availability(session, body.doctor_id)
    booked = await get_booked_slots_by_doctor(session, [doctor.id])
    return doctor_to_profile(doctor, booked[doctor.id])


@router.get("/appointments", response_model=list[AppointmentDetail])
async def all_appointments(
    session: AsyncSession = Depends(get_session),
    _: Actor = Depends(require_admin),
) -> list[AppointmentDetail]:
    return await list_all_appointments_with_parties(session)


@router.post("/cancel-appointment", response_model=AppointmentPublic)
async def cancel_appointment(
    body: AppointmentActionRequest,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(require_admin),
) -> AppointmentPublic:
    appointment = await lifecycle_service.cancel(session, body.appointment_id, actor)
    return to_public(appointment)


@router.get("/dashboard", response_model=AdminDashboard)
async def dashboard(
    session: AsyncSession = Depends(get_session),
    _: Actor = Depends(require_admin),
) -> AdminDashboard:
    return AdminDashboard(**await admin_dashboard(session))
