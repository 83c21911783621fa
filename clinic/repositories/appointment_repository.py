from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.appointment import Appointment, AppointmentStatus, OCCUPYING_STATUSES
from ..models.doctor import Doctor

class AppointmentRepository:
    """Booking store. All calls run inside the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    def lock_practitioner(self, doctor_id: int) -> Optional[Doctor]:
        """Lock the doctor row until the end of the current transaction.

        Concurrent bookings for the same doctor queue up here, so the
        overlap read that follows sees every booking committed before it.
        """
        return self.db.query(Doctor).filter(Doctor.id == doctor_id).with_for_update().first()

    def find_overlapping(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status.in_(OCCUPYING_STATUSES),
            Appointment.appointment_date < end,
            Appointment.end_time > start,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.appointment_date).all()

    def save(self, appointment: Appointment) -> Appointment:
        """Add and flush; rolls the transaction back on a constraint violation."""
        self.db.add(appointment)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise
        return appointment

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)
        self.db.flush()

    def list_all(self, skip: int = 0, limit: int = 20) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .order_by(Appointment.appointment_date)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def find_by_patient(self, patient_id: int) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date)
            .all()
        )

    def find_by_doctor(self, doctor_id: int) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.appointment_date)
            .all()
        )

    def find_by_status(self, status: AppointmentStatus) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.status == status)
            .order_by(Appointment.appointment_date)
            .all()
        )

    def find_by_date_range(self, start: datetime, end: datetime) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter(Appointment.appointment_date.between(start, end))
            .order_by(Appointment.appointment_date)
            .all()
        )

    def has_for_patient(self, patient_id: int) -> bool:
        return self.db.query(
            self.db.query(Appointment).filter(Appointment.patient_id == patient_id).exists()
        ).scalar()

    def has_for_doctor(self, doctor_id: int) -> bool:
        return self.db.query(
            self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id).exists()
        ).scalar()
