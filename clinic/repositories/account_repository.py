from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.exceptions import AccountNotFoundError
from ..models.user import User

def normalize_email(email: str) -> str:
    return email.strip().lower()

class AccountRepository:
    """Credential store: account lookup by e-mail."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> User:
        user = self.db.query(User).filter(
            func.lower(User.email) == normalize_email(email)
        ).first()
        if user is None:
            raise AccountNotFoundError(email)
        return user

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(
            self.db.query(User).filter(
                func.lower(User.email) == normalize_email(email)
            ).exists()
        ).scalar()

    def get(self, user_id: int) -> User:
        return self.db.get(User, user_id)

    def add(self, user: User) -> User:
        user.email = normalize_email(user.email)
        self.db.add(user)
        self.db.flush()
        return user
