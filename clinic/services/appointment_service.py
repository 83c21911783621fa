from datetime import datetime, timedelta, timezone
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import AuthorizationError, BadRequestError, ResourceNotFoundError
from ..core.principal import Principal
from ..core.security import Clock, UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from .scheduling import BookingConflictChecker

logger = logging.getLogger(__name__)

class AppointmentService:
    """Appointment lifecycle. Every write of a slot goes through the conflict checker."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or Clock()
        self.appointments = AppointmentRepository(db)
        self.checker = BookingConflictChecker(self.appointments)

    def create_appointment(self, data: AppointmentCreate, principal: Principal) -> Appointment:
        self._ensure_future(data.appointment_date)
        patient_id = self._patient_id_for_booking(data.patient_id, principal)

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=data.doctor_id,
            appointment_date=data.appointment_date,
            end_time=data.appointment_date + timedelta(minutes=data.duration_minutes),
            duration_minutes=data.duration_minutes,
            status=AppointmentStatus.SCHEDULED,
            reason=data.reason,
            notes=data.notes,
        )
        self.checker.reserve(appointment)
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id} with doctor {appointment.doctor_id} "
            f"at {appointment.appointment_date}"
        )
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Apply the provided fields; a changed slot is re-validated before commit."""
        appointment = self._get(appointment_id)
        slot_changed = False

        if data.doctor_id is not None and data.doctor_id != appointment.doctor_id:
            # Checked here too: a cancelled booking skips the conflict checker
            if self.db.get(Doctor, data.doctor_id) is None:
                raise ResourceNotFoundError(f"Doctor not found with id: {data.doctor_id}")
            appointment.doctor_id = data.doctor_id
            slot_changed = True

        if data.appointment_date is not None and data.appointment_date != appointment.appointment_date:
            self._ensure_future(data.appointment_date)
            appointment.appointment_date = data.appointment_date
            slot_changed = True

        if data.duration_minutes is not None and data.duration_minutes != appointment.duration_minutes:
            appointment.duration_minutes = data.duration_minutes
            slot_changed = True

        appointment.end_time = appointment.appointment_date + timedelta(minutes=appointment.duration_minutes)

        if data.status is not None and data.status != appointment.status:
            if not appointment.status.occupies_slot and data.status.occupies_slot:
                # Reactivating a cancelled booking claims its slot again
                slot_changed = True
            appointment.status = data.status

        if data.reason is not None:
            appointment.reason = data.reason
        if data.notes is not None:
            appointment.notes = data.notes

        if slot_changed and appointment.status.occupies_slot:
            self.checker.reserve(appointment)
        else:
            self.appointments.save(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def cancel_appointment(self, appointment_id: int, principal: Principal, reason: Optional[str] = None) -> Appointment:
        appointment = self._get(appointment_id)
        self._ensure_can_access(appointment, principal)

        if appointment.status is AppointmentStatus.CANCELLED:
            raise BadRequestError("Appointment already cancelled")
        if appointment.status is AppointmentStatus.COMPLETED:
            raise BadRequestError("Completed appointments cannot be cancelled")

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_reason = reason
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Cancelled appointment {appointment.id}")
        return appointment

    def delete_appointment(self, appointment_id: int) -> None:
        appointment = self._get(appointment_id)
        self.appointments.delete(appointment)
        self.db.commit()
        logger.info(f"Deleted appointment {appointment_id}")

    def get_appointment(self, appointment_id: int, principal: Principal) -> Appointment:
        appointment = self._get(appointment_id)
        self._ensure_can_access(appointment, principal)
        return appointment

    def list_appointments(self, skip: int = 0, limit: int = 20) -> List[Appointment]:
        return self.appointments.list_all(skip=skip, limit=limit)

    def appointments_for_patient(self, patient_id: int, principal: Principal) -> List[Appointment]:
        if self.db.get(Patient, patient_id) is None:
            raise ResourceNotFoundError(f"Patient not found with id: {patient_id}")
        if principal.role is UserRole.PATIENT and self._own_patient_id(principal) != patient_id:
            raise AuthorizationError("Patients can only view their own appointments")
        return self.appointments.find_by_patient(patient_id)

    def appointments_for_doctor(self, doctor_id: int) -> List[Appointment]:
        return self.appointments.find_by_doctor(doctor_id)

    def appointments_by_status(self, status: AppointmentStatus) -> List[Appointment]:
        return self.appointments.find_by_status(status)

    def appointments_in_range(self, start: datetime, end: datetime) -> List[Appointment]:
        if end < start:
            raise BadRequestError("End of range must not be before its start")
        return self.appointments.find_by_date_range(start, end)

    def _get(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise ResourceNotFoundError(f"Appointment not found with id: {appointment_id}")
        return appointment

    def _now(self) -> datetime:
        return self.clock.now().astimezone(timezone.utc).replace(tzinfo=None)

    def _ensure_future(self, start: datetime) -> None:
        if start <= self._now():
            raise BadRequestError("Appointment must be in the future")

    def _own_patient_id(self, principal: Principal) -> Optional[int]:
        patient = self.db.query(Patient).filter(Patient.user_id == principal.account_id).first()
        return patient.id if patient else None

    def _patient_id_for_booking(self, requested_id: Optional[int], principal: Principal) -> int:
        if principal.role is UserRole.PATIENT:
            own_id = self._own_patient_id(principal)
            if own_id is None:
                raise ResourceNotFoundError("Patient profile not found")
            if requested_id is not None and requested_id != own_id:
                raise AuthorizationError("Patients can only book for themselves")
            return own_id

        if requested_id is None:
            raise BadRequestError("patient_id is required")
        if self.db.get(Patient, requested_id) is None:
            raise ResourceNotFoundError(f"Patient not found with id: {requested_id}")
        return requested_id

    def _ensure_can_access(self, appointment: Appointment, principal: Principal) -> None:
        if principal.role is UserRole.PATIENT and self._own_patient_id(principal) != appointment.patient_id:
            raise AuthorizationError("Patients can only access their own appointments")
