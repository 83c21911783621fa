from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import BadRequestError, ResourceNotFoundError
from ..core.security import SecretVerifier, UserRole
from ..models.doctor import Doctor
from ..models.staff import Staff, StaffRole
from ..models.user import User
from ..repositories.account_repository import AccountRepository, normalize_email
from ..repositories.appointment_repository import AppointmentRepository
from ..schemas.auth import AccountCreate, AccountUpdate
from ..schemas.staff import DoctorCreate, DoctorUpdate, StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("first_name", "last_name", "phone_number", "date_of_birth")

def apply_account_update(accounts: AccountRepository, user: User, data: AccountUpdate) -> None:
    """Copy the account fields set in ``data`` onto ``user``.

    A new e-mail must not belong to another account. Tokens are issued for
    the e-mail, so a change logs the account out everywhere.
    """
    changes = data.model_dump(exclude_unset=True)
    email = changes.pop("email", None)
    if email is not None and normalize_email(email) != user.email:
        if accounts.exists_by_email(email):
            raise BadRequestError("Email already registered")
        user.email = normalize_email(email)

    for field in ACCOUNT_FIELDS:
        if changes.get(field) is not None:
            setattr(user, field, changes[field])

class ProvisioningService:
    """Manages the doctor and staff accounts that only an administrator may add."""

    def __init__(self, db: Session, secret_verifier: SecretVerifier):
        self.db = db
        self.accounts = AccountRepository(db)
        self.secret_verifier = secret_verifier

    def create_doctor(self, data: DoctorCreate) -> Doctor:
        if self.db.query(Doctor).filter(Doctor.license_number == data.license_number).first():
            raise BadRequestError("License number already registered")

        user = self._new_account(data, UserRole.DOCTOR)
        doctor = Doctor(
            user_id=user.id,
            specialization=data.specialization,
            license_number=data.license_number,
            department=data.department,
            biography=data.biography,
        )
        self._commit(doctor)
        logger.info(f"Provisioned doctor {doctor.id} ({doctor.specialization})")
        return doctor

    def create_staff(self, data: StaffCreate) -> Staff:
        user = self._new_account(data, UserRole.ADMIN)
        staff = Staff(
            user_id=user.id,
            department=data.department,
            staff_role=data.staff_role,
            responsibilities=data.responsibilities,
        )
        self._commit(staff)
        logger.info(f"Provisioned staff member {staff.id}")
        return staff

    def ensure_default_admin(self, email: str, password: Optional[str]) -> bool:
        """Create the bootstrap administrator; False when it already exists."""
        if self.accounts.exists_by_email(email):
            return False
        if not password:
            raise BadRequestError("DEFAULT_ADMIN_PASSWORD is not configured")

        user = User(
            email=email,
            password_hash=self.secret_verifier.hash(password),
            role=UserRole.ADMIN,
            first_name="Admin",
            last_name="User",
        )
        try:
            self.accounts.add(user)
        except IntegrityError:
            # Another request created it between the check and the insert
            self.db.rollback()
            return False
        staff = Staff(
            user_id=user.id,
            department="Administration",
            staff_role=StaffRole.ADMIN,
            responsibilities="System administration",
        )
        self._commit(staff)
        logger.info("Default administrator created")
        return True

    def list_doctors(self, skip: int = 0, limit: int = 20) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id).offset(skip).limit(limit).all()

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.get(Doctor, doctor_id)
        if doctor is None:
            raise ResourceNotFoundError(f"Doctor not found with id: {doctor_id}")
        return doctor

    def doctors_by_specialization(self, specialization: str) -> List[Doctor]:
        return (
            self.db.query(Doctor)
            .filter(func.lower(Doctor.specialization) == specialization.strip().lower())
            .order_by(Doctor.id)
            .all()
        )

    def update_doctor(self, doctor_id: int, data: DoctorUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        apply_account_update(self.accounts, doctor.user, data)
        for field in ("specialization", "department", "biography"):
            value = getattr(data, field)
            if value is not None:
                setattr(doctor, field, value)
        self._commit(doctor)
        logger.info(f"Updated doctor {doctor.id}")
        return doctor

    def delete_doctor(self, doctor_id: int) -> None:
        """Remove the doctor and its account. Doctors with bookings are kept."""
        doctor = self.get_doctor(doctor_id)
        if AppointmentRepository(self.db).has_for_doctor(doctor_id):
            raise BadRequestError("Doctor has appointments and cannot be deleted")
        self._delete_account(doctor)
        logger.info(f"Deleted doctor {doctor_id}")

    def list_staff(self, skip: int = 0, limit: int = 20) -> List[Staff]:
        return self.db.query(Staff).order_by(Staff.id).offset(skip).limit(limit).all()

    def get_staff(self, staff_id: int) -> Staff:
        staff = self.db.get(Staff, staff_id)
        if staff is None:
            raise ResourceNotFoundError(f"Staff not found with id: {staff_id}")
        return staff

    def staff_by_role(self, staff_role: StaffRole) -> List[Staff]:
        return self.db.query(Staff).filter(Staff.staff_role == staff_role).order_by(Staff.id).all()

    def update_staff(self, staff_id: int, data: StaffUpdate) -> Staff:
        staff = self.get_staff(staff_id)
        apply_account_update(self.accounts, staff.user, data)
        for field in ("department", "staff_role", "responsibilities"):
            value = getattr(data, field)
            if value is not None:
                setattr(staff, field, value)
        self._commit(staff)
        logger.info(f"Updated staff member {staff.id}")
        return staff

    def delete_staff(self, staff_id: int, acting_account_id: int) -> None:
        staff = self.get_staff(staff_id)
        if staff.user_id == acting_account_id:
            raise BadRequestError("Administrators cannot delete their own account")
        self._delete_account(staff)
        logger.info(f"Deleted staff member {staff_id}")

    def _delete_account(self, profile) -> None:
        self.db.delete(profile)
        self.db.delete(profile.user)
        self.db.commit()

    def _new_account(self, data: AccountCreate, role: UserRole) -> User:
        if self.accounts.exists_by_email(data.email):
            raise BadRequestError("Email already registered")

        user = User(
            email=data.email,
            password_hash=self.secret_verifier.hash(data.password),
            role=role,
            first_name=data.first_name,
            last_name=data.last_name,
            phone_number=data.phone_number,
            date_of_birth=data.date_of_birth,
        )
        try:
            return self.accounts.add(user)
        except IntegrityError:
            self.db.rollback()
            raise BadRequestError("Email already registered")

    def _commit(self, profile) -> None:
        self.db.add(profile)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BadRequestError("Account already exists")
        self.db.refresh(profile)
