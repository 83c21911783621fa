from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from ..core.exceptions import AccountNotFoundError, AuthenticationError, BadRequestError
from ..core.security import SecretVerifier, TokenService, UserRole
from ..models.patient import Patient
from ..models.user import User
from ..repositories.account_repository import AccountRepository
from ..schemas.auth import TokenResponse, UserLogin, UserRegister, UserResponse

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session, secret_verifier: SecretVerifier, token_service: TokenService):
        self.db = db
        self.accounts = AccountRepository(db)
        self.secret_verifier = secret_verifier
        self.token_service = token_service

    def register_user(self, user_data: UserRegister) -> TokenResponse:
        """Register a new patient account and sign it in."""
        if user_data.role is not UserRole.PATIENT:
            raise BadRequestError("Only PATIENT registration is supported via this endpoint")

        # Check if user already exists
        if self.accounts.exists_by_email(user_data.email):
            raise BadRequestError("Email already registered")

        new_user = User(
            email=user_data.email,
            password_hash=self.secret_verifier.hash(user_data.password),
            role=UserRole.PATIENT,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            phone_number=user_data.phone_number,
            date_of_birth=user_data.date_of_birth,
        )

        try:
            self.accounts.add(new_user)
            self.db.add(Patient(
                user_id=new_user.id,
                address=user_data.address,
                city=user_data.city,
                province=user_data.province,
                zip_code=user_data.zip_code,
            ))
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same e-mail
            self.db.rollback()
            raise BadRequestError("Email already registered")

        self.db.refresh(new_user)
        logger.info(f"Registered patient account {new_user.id}")
        return self._token_response(new_user)

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        try:
            user = self.accounts.find_by_email(login_data.email)
        except AccountNotFoundError:
            # Same cost and same answer as a wrong password
            self.secret_verifier.dummy_verify()
            raise AuthenticationError("Invalid email or password")

        if not self.secret_verifier.verify(login_data.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        return self._token_response(user)

    def _token_response(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=self.token_service.issue(user.email),
            expires_in=self.token_service.expires_in,
            user=UserResponse.model_validate(user),
        )
