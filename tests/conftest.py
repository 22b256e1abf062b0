import json
import os

# Settings are read at import time, so the environment must be in place first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENV"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAIL"] = "admin@docplus.example.com"
os.environ["ADMIN_PASSWORD"] = "admin-pass-123"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import docplus.models  # noqa: F401 - register tables
from docplus.core.db import get_session
from docplus.core.security import Role, create_access_token, hash_password
from docplus.main import app
from docplus.models.appointment import Appointment, AppointmentStatus
from docplus.models.doctor import Doctor
from docplus.models.user import User
from docplus.services.payment_service import RazorpayBridge, get_payment_bridge
from docplus.services.slot_service import get_booked_times

DOCTOR_PASSWORD = "doctor-pass-123"
PATIENT_PASSWORD = "patient-pass-123"


class FakeRazorpay:
    """In-memory stand-in for the Razorpay orders API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/v1/orders":
            body = json.loads(request.content)
            order_id = f"order_{len(self.orders) + 1:04d}"
            order = {
                "id": order_id,
                "entity": "order",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body.get("receipt"),
                "status": "created",
            }
            self.orders[order_id] = order
            return httpx.Response(200, json=order)
        if request.method == "GET" and path.startswith("/v1/orders/"):
            order = self.orders.get(path.rsplit("/", 1)[-1])
            if order:
                return httpx.Response(200, json=order)
            return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}})
        return httpx.Response(404)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
def bridge(razorpay: FakeRazorpay) -> RazorpayBridge:
    return RazorpayBridge(
        os.environ["RAZORPAY_KEY_ID"],
        os.environ["RAZORPAY_KEY_SECRET"],
        transport=httpx.MockTransport(razorpay.handler),
    )


@pytest.fixture
async def client(session_maker, bridge):
    async def override_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_payment_bridge] = lambda: bridge
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _persist(session_maker, obj):
    async with session_maker() as session:
        session.add(obj)
        await session.commit()
        await session.refresh(obj)
        return obj


@pytest.fixture
async def doctor(session_maker) -> Doctor:
    return await _persist(
        session_maker,
        Doctor(
            name="Dr. Asha Rao",
            email="asha@docplus.example.com",
            hashed_password=hash_password(DOCTOR_PASSWORD),
            speciality="General Physician",
            degree="MBBS",
            experience="4 Years",
            fees=500,
        ),
    )


@pytest.fixture
async def other_doctor(session_maker) -> Doctor:
    return await _persist(
        session_maker,
        Doctor(
            name="Dr. Vikram Shah",
            email="vikram@docplus.example.com",
            hashed_password=hash_password(DOCTOR_PASSWORD),
            speciality="Dermatologist",
            fees=800,
        ),
    )


@pytest.fixture
async def patient(session_maker) -> User:
    return await _persist(
        session_maker,
        User(name="Priya", email="priya@docplus.example.com", hashed_password=hash_password(PATIENT_PASSWORD)),
    )


@pytest.fixture
async def other_patient(session_maker) -> User:
    return await _persist(
        session_maker,
        User(name="Rahul", email="rahul@docplus.example.com", hashed_password=hash_password(PATIENT_PASSWORD)),
    )


def bearer(subject: int | str, role: Role) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, role)}"}


@pytest.fixture
def headers_for():
    return bearer


async def _live_slot_times(session, doctor_id: int, slot_date: str) -> set[str]:
    """Slot times of the doctor's non-cancelled appointments on a date."""
    result = await session.execute(
        select(Appointment.slot_time).where(
            Appointment.doctor_id == doctor_id,
            Appointment.slot_date == slot_date,
            Appointment.status != AppointmentStatus.cancelled,
        )
    )
    return {row[0] for row in result.all()}


@pytest.fixture
def live_slot_times():
    return _live_slot_times


@pytest.fixture
def assert_slots_match_appointments():
    async def check(session, doctor_id: int, slot_date: str) -> None:
        assert await get_booked_times(session, doctor_id, slot_date) == await _live_slot_times(
            session, doctor_id, slot_date
        )

    return check
