from enum import Enum
from typing import Iterable, Optional

from .principal import Principal
from .security import UserRole

class AccessDecision(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"

ALL_ROLES = frozenset(UserRole)

def check_access(principal: Optional[Principal], allowed_roles: Iterable[UserRole]) -> AccessDecision:
    """Decide whether ``principal`` may run an operation open to ``allowed_roles``."""
    if principal is None:
        return AccessDecision.UNAUTHENTICATED
    if principal.role not in frozenset(allowed_roles):
        return AccessDecision.FORBIDDEN
    return AccessDecision.ALLOW
