from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Index, DDL, event, text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

    @property
    def occupies_slot(self) -> bool:
        return self is not AppointmentStatus.CANCELLED

OCCUPYING_STATUSES = tuple(s for s in AppointmentStatus if s.occupies_slot)

_ACTIVE_ROWS = "status <> 'CANCELLED'"

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Last-resort guard: two live bookings can never share a start time
        Index(
            "uq_appointments_doctor_start_active",
            "doctor_id",
            "appointment_date",
            unique=True,
            sqlite_where=text(_ACTIVE_ROWS),
            postgresql_where=text(_ACTIVE_ROWS),
        ),
        Index("ix_appointments_doctor_window", "doctor_id", "appointment_date", "end_time"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)

    # Appointment details, naive UTC; the slot is [appointment_date, end_time)
    appointment_date = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(
        SQLEnum(AppointmentStatus, native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    cancelled_reason = Column(String(255), nullable=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    @property
    def patient_name(self) -> str:
        return self.patient.full_name

    @property
    def doctor_name(self) -> str:
        return self.doctor.full_name

    @property
    def doctor_specialization(self) -> str:
        return self.doctor.specialization

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.appointment_date}')>"

# PostgreSQL rejects overlapping live bookings of one doctor at the storage level
event.listen(
    Appointment.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "ALTER TABLE appointments ADD CONSTRAINT ex_appointments_doctor_overlap "
        "EXCLUDE USING gist (doctor_id WITH =, "
        "tsrange(appointment_date, end_time, '[)') WITH &&) "
        f"WHERE ({_ACTIVE_ROWS})"
    ).execute_if(dialect="postgresql"),
)
