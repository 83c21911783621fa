from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from ..models.staff import StaffRole
from .auth import AccountCreate, AccountUpdate

class DoctorCreate(AccountCreate):
    specialization: str = Field(min_length=1, max_length=100)
    license_number: str = Field(min_length=1, max_length=50)
    department: Optional[str] = None
    biography: Optional[str] = None

class DoctorUpdate(AccountUpdate):
    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    department: Optional[str] = None
    biography: Optional[str] = None

class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    email: str
    full_name: str
    specialization: str
    license_number: str
    department: Optional[str] = None
    biography: Optional[str] = None
    created_at: Optional[datetime] = None

class StaffCreate(AccountCreate):
    department: Optional[str] = None
    staff_role: StaffRole = StaffRole.ADMIN
    responsibilities: Optional[str] = None

class StaffUpdate(AccountUpdate):
    department: Optional[str] = None
    staff_role: Optional[StaffRole] = None
    responsibilities: Optional[str] = None

class StaffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    email: str
    full_name: str
    department: Optional[str] = None
    staff_role: StaffRole
    responsibilities: Optional[str] = None
    created_at: Optional[datetime] = None
