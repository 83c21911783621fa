from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
import threading

from clinic.core.exceptions import SlotUnavailableError
from clinic.core.principal import Principal
from clinic.core.security import UserRole
from clinic.models import Appointment
from clinic.schemas.appointment import AppointmentCreate
from clinic.services.appointment_service import AppointmentService
from tests.conftest import seed_doctor_and_patient

ROUNDS = 100

ADMIN = Principal(
    account_id=0,
    email="admin@clinic.com",
    role=UserRole.ADMIN,
    authorities=frozenset({UserRole.ADMIN.authority}),
)

def test_concurrent_overlapping_bookings_never_both_succeed(session_factory, frozen_clock):
    """Two requests race for overlapping slots of one doctor; exactly one wins."""
    with session_factory() as db:
        doctor, patient = seed_doctor_and_patient(db)
        doctor_id, patient_id = doctor.id, patient.id

    barrier = threading.Barrier(2)

    def book(start: datetime) -> str:
        data = AppointmentCreate(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=start,
            duration_minutes=30,
            reason="Race",
        )
        db = session_factory()
        try:
            service = AppointmentService(db, frozen_clock)
            barrier.wait()
            service.create_appointment(data, ADMIN)
            return "booked"
        except SlotUnavailableError:
            return "conflict"
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        for round_number in range(ROUNDS):
            day = datetime(2031, 1, 1, 10, 0) + timedelta(days=round_number)
            outcomes = list(pool.map(book, [day, day + timedelta(minutes=15)]))
            assert sorted(outcomes) == ["booked", "conflict"], (round_number, outcomes)

    with session_factory() as db:
        assert db.query(Appointment).count() == ROUNDS

def test_concurrent_abutting_bookings_both_succeed(session_factory, frozen_clock):
    with session_factory() as db:
        doctor, patient = seed_doctor_and_patient(db)
        doctor_id, patient_id = doctor.id, patient.id

    barrier = threading.Barrier(2)
    start = datetime(2031, 6, 1, 10, 0)

    def book(offset_minutes: int) -> int:
        data = AppointmentCreate(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=start + timedelta(minutes=offset_minutes),
            duration_minutes=30,
            reason="Back to back",
        )
        with session_factory() as db:
            barrier.wait()
            return AppointmentService(db, frozen_clock).create_appointment(data, ADMIN).id

    with ThreadPoolExecutor(max_workers=2) as pool:
        ids = list(pool.map(book, [0, 30]))

    assert len(set(ids)) == 2
