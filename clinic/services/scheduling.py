from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
import logging

from ..core.exceptions import ResourceNotFoundError, SlotUnavailableError
from ..models.appointment import Appointment
from ..repositories.appointment_repository import AppointmentRepository

logger = logging.getLogger(__name__)

def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end) share an instant.

    Intervals that only touch (``a_end == b_start``) do not overlap.
    """
    return a_start < b_end and b_start < a_end

class BookingConflictChecker:
    """Enforces that a doctor is never double-booked.

    ``reserve`` must run inside the caller's transaction; the caller
    commits once it returns.
    """

    def __init__(self, appointments: AppointmentRepository):
        self.appointments = appointments

    def has_conflict(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        overlapping = self.appointments.find_overlapping(doctor_id, start, end, exclude_id=exclude_id)
        # The store query already filters; keep the predicate authoritative here
        return any(
            intervals_overlap(existing.appointment_date, existing.end_time, start, end)
            for existing in overlapping
        )

    def reserve(self, appointment: Appointment) -> Appointment:
        """Persist ``appointment`` if its doctor is free for the whole slot.

        Raises SlotUnavailableError on overlap, whether it is found by the
        read or by a storage constraint racing with another writer.
        """
        doctor_id = appointment.doctor_id
        start, end = appointment.appointment_date, appointment.end_time

        if self.appointments.lock_practitioner(doctor_id) is None:
            raise ResourceNotFoundError(f"Doctor not found with id: {doctor_id}")

        if self.has_conflict(doctor_id, start, end, exclude_id=appointment.id):
            logger.info(f"Slot {start} - {end} unavailable for doctor {doctor_id}")
            raise SlotUnavailableError()

        try:
            return self.appointments.save(appointment)
        except IntegrityError:
            logger.warning(f"Storage constraint rejected overlapping booking for doctor {doctor_id}")
            raise SlotUnavailableError()
