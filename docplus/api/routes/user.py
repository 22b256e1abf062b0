import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from docplus.api.deps import get_current_user, get_session
from docplus.api.schemas.appointment import (
    AppointmentActionRequest,
    BookAppointmentRequest,
    PaymentOrder,
    VerifyPaymentRequest,
)
from docplus.api.schemas.auth import LoginRequest, RegisterRequest, Token
from docplus.core.errors import PaymentVerificationError
from docplus.core.security import Actor, Role
from docplus.models.appointment import AppointmentDetail, AppointmentPublic
from docplus.models.user import User, UserPublic, UserUpdate
from docplus.services import lifecycle_service
from docplus.services.appointment_service import list_appointments_for_user, to_public
from docplus.services.auth_service import login_user, signup_user, update_user_profile, user_to_public
from docplus.services.payment_service import RazorpayBridge, get_payment_bridge
from docplus.services.reservation_service import reserve

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["user"])


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> Token:
    pair = await signup_user(session, body.name, body.email, body.password)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    _, access, expires_in = pair
    return Token(access_token=access, expires_in=expires_in, role=Role.patient.value)


@router.post("/login", response_model=Token)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> Token:
    pair = await login_user(session, body.email, body.password)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = pair
    return Token(access_token=access, expires_in=expires_in, role=Role.patient.value)


@router.get("/get-profile", response_model=UserPublic)
async def get_profile(current_user: User = Depends(get_current_user)) -> UserPublic:
    return user_to_public(current_user)


@router.post("/update-profile", response_model=UserPublic)
async def update_profile(
    body: UserUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> UserPublic:
    user = await update_user_profile(session, current_user, body)
    return user_to_public(user)


@router.post("/book-appointment", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AppointmentPublic:
    appointment = await reserve(session, body.doctor_id, body.slot_date, body.slot_time, current_user.id)
    return to_public(appointment)


@router.get("/appointments", response_model=list[AppointmentDetail])
async def list_my_appointments(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[AppointmentDetail]:
    return await list_appointments_for_user(session, current_user.id)


@router.post("/cancel-appointment", response_model=AppointmentPublic)
async def cancel_my_appointment(
    body: AppointmentActionRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AppointmentPublic:
    actor = Actor(role=Role.patient, id=current_user.id)
    appointment = await lifecycle_service.cancel(session, body.appointment_id, actor)
    return to_public(appointment)


@router.post("/payment-razorpay", response_model=PaymentOrder)
async def create_payment_order(
    body: AppointmentActionRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    bridge: RazorpayBridge = Depends(get_payment_bridge),
) -> PaymentOrder:
    actor = Actor(role=Role.patient, id=current_user.id)
    order = await lifecycle_service.initiate_payment(session, bridge, body.appointment_id, actor)
    return PaymentOrder(
        id=order["id"],
        amount=order["amount"],
        currency=order["currency"],
        receipt=order.get("receipt"),
    )


@router.post("/verifyRazorpay", response_model=AppointmentPublic)
async def verify_payment(
    body: VerifyPaymentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    bridge: RazorpayBridge = Depends(get_payment_bridge),
) -> AppointmentPublic:
    actor = Actor(role=Role.patient, id=current_user.id)
    if not bridge.verify(body.razorpay_order_id, body.razorpay_payment_id, body.razorpay_signature):
        logger.warning("Payment signature mismatch for order=%s", body.razorpay_order_id)
        raise PaymentVerificationError()
    # The order's receipt carries the appointment id set when the order was created
    order = await bridge.fetch_order(body.razorpay_order_id)
    try:
        appointment_id = int(order.get("receipt") or "")
    except ValueError as e:
        logger.warning("Order %s has no appointment receipt", body.razorpay_order_id)
        raise PaymentVerificationError("Payment order does not reference an appointment") from e
    appointment = await lifecycle_service.confirm_payment(
        session,
        bridge,
        appointment_id,
        body.razorpay_order_id,
        body.razorpay_payment_id,
        body.razorpay_signature,
        actor,
    )
    return to_public(appointment)
