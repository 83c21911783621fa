from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.appointment import AppointmentStatus

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store instants as naive UTC; naive input is taken to be UTC already."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

class AppointmentCreate(BaseModel):
    # Patients book for themselves; staff must name the patient
    patient_id: Optional[int] = None
    doctor_id: int
    appointment_date: datetime
    duration_minutes: int = Field(default=30, gt=0, le=24 * 60)
    reason: str = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("appointment_date")
    @classmethod
    def normalize_start(cls, value):
        return to_naive_utc(value)

class AppointmentUpdate(BaseModel):
    doctor_id: Optional[int] = None
    appointment_date: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    status: Optional[AppointmentStatus] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("appointment_date")
    @classmethod
    def normalize_start(cls, value):
        return to_naive_utc(value)

class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=255)

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    patient_name: str
    doctor_id: int
    doctor_name: str
    doctor_specialization: str
    appointment_date: datetime
    end_time: datetime
    duration_minutes: int
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancelled_reason: Optional[str] = None
    created_at: Optional[datetime] = None
