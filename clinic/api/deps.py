from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Iterable

from ..core.authorization import ALL_ROLES, AccessDecision, check_access
from ..core.database import get_db
from ..core.exceptions import AuthenticationError, AuthorizationError, ServiceUnavailableError
from ..core.principal import Principal
from ..core.security import SecretVerifier, TokenService, UserRole
from ..services.appointment_service import AppointmentService
from ..services.auth_service import AuthService
from ..services.patient_service import PatientService
from ..services.provisioning_service import ProvisioningService

# Role-based access control dependencies
def require_role(allowed_roles: Iterable[UserRole]):
    """Create a dependency that admits only principals holding one of ``allowed_roles``.

    The principal is the one the authentication middleware attached to the
    request. No principal means 401 (or 503 if the credential store could
    not be reached); a principal with another role means 403.
    """
    allowed = frozenset(allowed_roles)

    async def role_checker(request: Request) -> Principal:
        principal = getattr(request.state, "principal", None)
        decision = check_access(principal, allowed)

        if decision is AccessDecision.UNAUTHENTICATED:
            if getattr(request.state, "auth_unavailable", False):
                raise ServiceUnavailableError()
            raise AuthenticationError()
        if decision is AccessDecision.FORBIDDEN:
            raise AuthorizationError(
                f"Access denied. Required roles: {sorted(role.value for role in allowed)}"
            )
        return principal

    role_checker.allowed_roles = allowed
    return role_checker

# Specific role dependencies
get_current_principal = require_role(ALL_ROLES)
get_admin_principal = require_role([UserRole.ADMIN])
get_doctor_principal = require_role([UserRole.DOCTOR, UserRole.ADMIN])
get_patient_principal = require_role([UserRole.PATIENT, UserRole.ADMIN])

# Collaborators built once in create_app
def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service

def get_secret_verifier(request: Request) -> SecretVerifier:
    return request.app.state.secret_verifier

def get_auth_service(
    db: Session = Depends(get_db),
    secret_verifier: SecretVerifier = Depends(get_secret_verifier),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, secret_verifier, token_service)

def get_provisioning_service(
    db: Session = Depends(get_db),
    secret_verifier: SecretVerifier = Depends(get_secret_verifier),
) -> ProvisioningService:
    return ProvisioningService(db, secret_verifier)

def get_appointment_service(request: Request, db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db, request.app.state.clock)

def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    return PatientService(db)
