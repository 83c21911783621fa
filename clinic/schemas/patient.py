from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from .auth import AccountUpdate

class PatientUpdate(AccountUpdate):
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip_code: Optional[str] = None

class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    email: str
    full_name: str
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip_code: Optional[str] = None
    created_at: Optional[datetime] = None
