from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from docplus.models.appointment import AppointmentDetail


class SlotInfo(BaseModel):
    time: str
    available: bool


class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]


class BookAppointmentRequest(BaseModel):
    # Clients send camelCase (docId, slotDate, slotTime); snake_case is accepted too
    model_config = ConfigDict(populate_by_name=True)

    doctor_id: int = Field(alias="docId")
    slot_date: date = Field(alias="slotDate")
    slot_time: str = Field(alias="slotTime", min_length=1)


class AppointmentActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: int = Field(alias="appointmentId")


class PaymentOrder(BaseModel):
    id: str
    amount: int  # minor units
    currency: str
    receipt: str | None = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class DoctorDashboard(BaseModel):
    earnings: float
    appointments: int
    patients: int
    latest_appointments: list[AppointmentDetail]


class AdminDashboard(BaseModel):
    doctors: int
    appointments: int
    patients: int
    latest_appointments: list[AppointmentDetail]
