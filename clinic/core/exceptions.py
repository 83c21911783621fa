from fastapi import HTTPException, status

# Security exceptions
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )

class ServiceUnavailableError(HTTPException):
    """A backing store could not be reached; the request may be retried."""

    def __init__(self, detail: str = "Service temporarily unavailable, please retry"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            headers={"Retry-After": "1"},
        )

# Domain exceptions
class ResourceNotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class BadRequestError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class SlotUnavailableError(HTTPException):
    def __init__(self, detail: str = "Doctor is not available at the requested time"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class AccountNotFoundError(LookupError):
    """Raised by the credential store when no account has the given e-mail."""

    def __init__(self, email: str):
        super().__init__(email)
        self.email = email
