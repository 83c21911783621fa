from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class StaffRole(str, enum.Enum):
    ADMIN = "ADMIN"
    RECEPTIONIST = "RECEPTIONIST"
    NURSE = "NURSE"
    TECHNICIAN = "TECHNICIAN"

class Staff(Base):
    """Non-clinical employee profile. Staff accounts hold the ADMIN role."""
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    department = Column(String(100), nullable=True)
    staff_role = Column(SQLEnum(StaffRole), nullable=False, default=StaffRole.ADMIN)
    responsibilities = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="staff")

    @property
    def full_name(self) -> str:
        return self.user.full_name

    @property
    def email(self) -> str:
        return self.user.email

    def __repr__(self):
        return f"<Staff(id={self.id}, user_id={self.user_id}, staff_role='{self.staff_role}')>"
