from enum import Enum
from typing import Iterable, Optional
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
import logging

from .database import STORE_UNAVAILABLE_ERRORS
from .exceptions import AccountNotFoundError
from .principal import PrincipalResolver
from .security import TokenService

logger = logging.getLogger(__name__)

class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_EXTRACTED = "token_extracted"
    AUTHENTICATED = "authenticated"

def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header, else None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token

class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Attach the caller's Principal to ``request.state``.

    The middleware never rejects a request. A request that fails any step
    continues without a principal and the route's role gate decides what
    to do with it. Paths under a public prefix are not inspected at all.
    """

    def __init__(
        self,
        app,
        token_service: TokenService,
        principal_resolver: PrincipalResolver,
        public_prefixes: Iterable[str] = (),
    ):
        super().__init__(app)
        self.token_service = token_service
        self.principal_resolver = principal_resolver
        self.public_prefixes = tuple(p.rstrip("/") for p in public_prefixes if p.rstrip("/"))

    def is_public(self, path: str) -> bool:
        return any(
            path == prefix or path.startswith(prefix + "/")
            for prefix in self.public_prefixes
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.principal = None
        request.state.auth_state = AuthState.UNAUTHENTICATED
        request.state.auth_unavailable = False

        if not self.is_public(request.url.path):
            await self._authenticate(request)

        return await call_next(request)

    async def _authenticate(self, request: Request) -> None:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return
        request.state.auth_state = AuthState.TOKEN_EXTRACTED

        if not self.token_service.validate(token):
            logger.debug(f"Rejected bearer token on {request.url.path}")
            request.state.auth_state = AuthState.UNAUTHENTICATED
            return

        email = self.token_service.subject_of(token)
        try:
            principal = await run_in_threadpool(self.principal_resolver.resolve, email)
        except AccountNotFoundError:
            logger.info("Valid token for an unknown account")
            request.state.auth_state = AuthState.UNAUTHENTICATED
            return
        except STORE_UNAVAILABLE_ERRORS as e:
            logger.warning(f"Credential store unavailable: {e.__class__.__name__}")
            request.state.auth_state = AuthState.UNAUTHENTICATED
            request.state.auth_unavailable = True
            return

        request.state.principal = principal
        request.state.auth_state = AuthState.AUTHENTICATED
