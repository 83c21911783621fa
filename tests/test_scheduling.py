from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from clinic.core.exceptions import ResourceNotFoundError, SlotUnavailableError
from clinic.models import Appointment, AppointmentStatus
from clinic.repositories.appointment_repository import AppointmentRepository
from clinic.services.scheduling import BookingConflictChecker, intervals_overlap
from tests.conftest import seed_doctor_and_patient

DAY = datetime(2031, 3, 10)

def at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)

def booking(doctor, patient, start: datetime, minutes: int = 30, status=AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_date=start,
        end_time=start + timedelta(minutes=minutes),
        duration_minutes=minutes,
        status=status,
        reason="Check-up",
    )

class TestIntervalsOverlap:

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(at(10), at(10, 30), at(10, 30), at(11))
        assert not intervals_overlap(at(10, 30), at(11), at(10), at(10, 30))

    def test_partial_overlap(self):
        assert intervals_overlap(at(10), at(10, 30), at(10, 15), at(10, 45))
        assert intervals_overlap(at(10, 15), at(10, 45), at(10), at(10, 30))

    def test_containment(self):
        assert intervals_overlap(at(10), at(12), at(10, 30), at(11))
        assert intervals_overlap(at(10, 30), at(11), at(10), at(12))

    def test_identical(self):
        assert intervals_overlap(at(10), at(10, 30), at(10), at(10, 30))

    def test_disjoint(self):
        assert not intervals_overlap(at(9), at(9, 30), at(10), at(10, 30))

class TestBookingConflictChecker:

    @pytest.fixture
    def seeded(self, db_session):
        return seed_doctor_and_patient(db_session)

    @pytest.fixture
    def checker(self, db_session):
        return BookingConflictChecker(AppointmentRepository(db_session))

    def test_half_open_interval(self, db_session, seeded, checker):
        doctor, patient = seeded
        checker.reserve(booking(doctor, patient, at(10)))  # A = [10:00, 10:30)
        db_session.commit()

        # B = [10:30, 11:00) abuts A
        assert checker.has_conflict(doctor.id, at(10, 30), at(11)) is False
        # C = [10:15, 10:45) overlaps A
        assert checker.has_conflict(doctor.id, at(10, 15), at(10, 45)) is True
        # Ending exactly when A starts
        assert checker.has_conflict(doctor.id, at(9, 30), at(10)) is False

    def test_reserve_abutting_booking(self, db_session, seeded, checker):
        doctor, patient = seeded
        checker.reserve(booking(doctor, patient, at(10)))
        checker.reserve(booking(doctor, patient, at(10, 30)))
        db_session.commit()

        assert db_session.query(Appointment).count() == 2

    def test_reserve_overlapping_booking_is_rejected(self, db_session, seeded, checker):
        doctor, patient = seeded
        checker.reserve(booking(doctor, patient, at(10)))
        db_session.commit()

        with pytest.raises(SlotUnavailableError) as exc_info:
            checker.reserve(booking(doctor, patient, at(10, 15)))
        assert exc_info.value.status_code == 409

    def test_cancelled_booking_does_not_occupy(self, db_session, seeded, checker):
        doctor, patient = seeded
        db_session.add(booking(doctor, patient, at(10), status=AppointmentStatus.CANCELLED))
        db_session.commit()

        assert checker.has_conflict(doctor.id, at(10), at(10, 30)) is False
        checker.reserve(booking(doctor, patient, at(10)))
        db_session.commit()

    def test_other_doctor_is_independent(self, db_session, seeded, checker):
        doctor, patient = seeded
        checker.reserve(booking(doctor, patient, at(10)))
        db_session.commit()

        assert checker.has_conflict(doctor.id + 1, at(10), at(10, 30)) is False

    def test_rescheduled_booking_ignores_itself(self, db_session, seeded, checker):
        doctor, patient = seeded
        appointment = checker.reserve(booking(doctor, patient, at(10)))
        db_session.commit()

        appointment.appointment_date = at(10, 15)
        appointment.end_time = at(10, 45)
        checker.reserve(appointment)
        db_session.commit()

        assert checker.has_conflict(doctor.id, at(10), at(10, 15)) is False

    def test_unknown_doctor(self, db_session, seeded, checker):
        doctor, patient = seeded
        appointment = booking(doctor, patient, at(10))
        appointment.doctor_id = doctor.id + 100

        with pytest.raises(ResourceNotFoundError):
            checker.reserve(appointment)

    def test_storage_guard_rejects_same_start(self, db_session, seeded):
        doctor, patient = seeded
        repository = AppointmentRepository(db_session)
        repository.save(booking(doctor, patient, at(10)))
        db_session.commit()

        # Bypass the checker entirely
        with pytest.raises(IntegrityError):
            repository.save(booking(doctor, patient, at(10), minutes=15))

    def test_storage_guard_ignores_cancelled_rows(self, db_session, seeded):
        doctor, patient = seeded
        repository = AppointmentRepository(db_session)
        repository.save(booking(doctor, patient, at(10), status=AppointmentStatus.CANCELLED))
        repository.save(booking(doctor, patient, at(10)))
        db_session.commit()

        assert db_session.query(Appointment).count() == 2
