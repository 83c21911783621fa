from .user import User
from .patient import Patient
from .doctor import Doctor
from .staff import Staff, StaffRole
from .appointment import Appointment, AppointmentStatus, OCCUPYING_STATUSES

__all__ = [
    "User",
    "Patient",
    "Doctor",
    "Staff",
    "StaffRole",
    "Appointment",
    "AppointmentStatus",
    "OCCUPYING_STATUSES",
]
