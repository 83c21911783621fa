from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext
from enum import Enum
import logging

logger = logging.getLogger(__name__)

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

    @property
    def authority(self) -> str:
        return f"ROLE_{self.value}"

class Clock:
    """Source of the current time. Tests swap in a fixed clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

# Password utilities
class SecretVerifier:
    """One-way salted hashing and verification of account secrets.

    Verification failures are always a plain ``False``: a missing or
    malformed digest looks exactly like a wrong password to the caller.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, plaintext: str) -> str:
        """Generate password hash."""
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: Optional[str]) -> bool:
        """Verify a plain password against its hash."""
        if not digest:
            self._context.dummy_verify()
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def dummy_verify(self) -> None:
        """Spend the cost of one verification without a real hash."""
        self._context.dummy_verify()

# JWT utilities
class TokenService:
    """Issues and validates signed, time-bound bearer tokens.

    Tokens carry ``sub`` (account e-mail), ``iat`` and ``exp`` as epoch
    seconds. Nothing is stored server-side; a token is valid until it
    expires.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta,
        algorithm: str = "HS256",
        clock: Optional[Clock] = None,
    ):
        if not secret_key:
            raise ValueError("Token signing key must not be empty")
        self._secret_key = secret_key
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock or Clock()

    @property
    def expires_in(self) -> int:
        return int(self._ttl.total_seconds())

    def issue(self, subject: str) -> str:
        """Create a signed access token for ``subject``."""
        issued_at = int(self._clock.now().timestamp())
        claims = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def validate(self, token: str) -> bool:
        """True only for a well-formed, correctly signed, unexpired token."""
        try:
            # Expiry is checked below against the injected clock
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
            if not self._has_canonical_signature(token):
                return False
        except (JWTError, ValueError, TypeError, UnicodeError):
            return False

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            return False

        expires_at = claims.get("exp")
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            return False

        return self._clock.now().timestamp() < expires_at

    def subject_of(self, token: str) -> str:
        """Subject claim of a token that has already passed ``validate``."""
        return jwt.get_unverified_claims(token)["sub"]

    @staticmethod
    def _has_canonical_signature(token: str) -> bool:
        # base64url tolerates non-zero trailing bits, so two spellings can
        # decode to the same MAC; only the canonical one is accepted
        signature = token.rsplit(".", 1)[-1]
        raw = base64url_decode(signature.encode("ascii"))
        return base64url_encode(raw).decode("ascii") == signature
