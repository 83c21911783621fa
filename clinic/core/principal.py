from dataclasses import dataclass, field
from typing import FrozenSet
from sqlalchemy.orm import sessionmaker

from .security import UserRole
from ..repositories.account_repository import AccountRepository

@dataclass(frozen=True)
class Principal:
    """Resolved identity attached to a single request."""
    account_id: int
    email: str
    role: UserRole
    authorities: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def for_account(cls, account) -> "Principal":
        role = UserRole(account.role)
        return cls(
            account_id=account.id,
            email=account.email,
            role=role,
            authorities=frozenset({role.authority}),
        )

class PrincipalResolver:
    """Turns the subject of a validated token into a Principal."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def resolve(self, email: str) -> Principal:
        """Look up the account for ``email``.

        Raises AccountNotFoundError when no such account exists. Storage
        errors propagate as SQLAlchemyError.
        """
        db = self._session_factory()
        try:
            account = AccountRepository(db).find_by_email(email)
            return Principal.for_account(account)
        finally:
            db.close()
