from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import AuthorizationError, BadRequestError, ResourceNotFoundError
from ..core.principal import Principal
from ..core.security import UserRole
from ..models.patient import Patient
from ..repositories.account_repository import AccountRepository
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.patient import PatientUpdate
from .provisioning_service import apply_account_update

logger = logging.getLogger(__name__)

class PatientService:
    """Patient records. Patients may only see their own."""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)

    def list_patients(self, skip: int = 0, limit: int = 20) -> List[Patient]:
        return self.db.query(Patient).order_by(Patient.id).offset(skip).limit(limit).all()

    def get_patient(self, patient_id: int, principal: Principal) -> Patient:
        patient = self._get(patient_id)
        if principal.role is UserRole.PATIENT and patient.user_id != principal.account_id:
            raise AuthorizationError("Patients can only view their own record")
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate) -> Patient:
        patient = self._get(patient_id)
        apply_account_update(self.accounts, patient.user, data)
        for field in ("address", "city", "province", "zip_code"):
            value = getattr(data, field)
            if value is not None:
                setattr(patient, field, value)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BadRequestError("Email already registered")
        self.db.refresh(patient)
        logger.info(f"Updated patient {patient.id}")
        return patient

    def delete_patient(self, patient_id: int) -> None:
        """Remove the patient and its account. Patients with bookings are kept."""
        patient = self._get(patient_id)
        if AppointmentRepository(self.db).has_for_patient(patient_id):
            raise BadRequestError("Patient has appointments and cannot be deleted")
        self.db.delete(patient)
        self.db.delete(patient.user)
        self.db.commit()
        logger.info(f"Deleted patient {patient_id}")

    def _get(self, patient_id: int) -> Patient:
        patient = self.db.get(Patient, patient_id)
        if patient is None:
            raise ResourceNotFoundError(f"Patient not found with id: {patient_id}")
        return patient
