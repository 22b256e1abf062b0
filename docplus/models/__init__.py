from docplus.models.user import Address, User, UserCreate, UserPublic, UserUpdate
from docplus.models.doctor import Doctor, DoctorCreate, DoctorProfile, DoctorPublic, DoctorUpdate
from docplus.models.appointment import (
    Appointment,
    AppointmentDetail,
    AppointmentPublic,
    AppointmentStatus,
    BookedSlot,
)

__all__ = [
    "Address",
    "User",
    "UserCreate",
    "UserPublic",
    "UserUpdate",
    "Doctor",
    "DoctorCreate",
    "DoctorProfile",
    "DoctorPublic",
    "DoctorUpdate",
    "Appointment",
    "AppointmentDetail",
    "AppointmentPublic",
    "AppointmentStatus",
    "BookedSlot",
]
