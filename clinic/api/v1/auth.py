from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...api.deps import get_auth_service, get_current_principal
from ...core.database import get_db
from ...core.exceptions import AuthenticationError
from ...core.principal import Principal
from ...repositories.account_repository import AccountRepository
from ...services.auth_service import AuthService
from ...schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new patient and return an access token."""
    return auth_service.register_user(user_data)

@router.post("/login", response_model=TokenResponse)
def login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Authenticate user and return an access token."""
    return auth_service.authenticate_user(login_data)

@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Get current user information."""
    user = AccountRepository(db).get(principal.account_id)
    if user is None:
        raise AuthenticationError()
    return UserResponse.model_validate(user)
