# telehealth/schemas/users/user.py
import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..auth.auth import ProfileFields
from ..common.common import CamelModel, validate_email


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    medical_history: Optional[List[Dict[str, Any]]] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    experience: Optional[int] = None
    qualifications: Optional[List[str]] = None
    hospital: Optional[str] = None
    consultation_fee: Optional[float] = None
    availability: Optional[Dict[str, Any]] = None
    rating: float = 0.0
    total_reviews: int = 0
    is_verified: bool = False
    is_active: bool = True
    last_login: Optional[dt.datetime] = None
    created_at: dt.datetime


class DoctorOut(CamelModel):
    """Public view of a doctor for the directory."""
    id: str
    name: str
    specialization: Optional[str] = None
    experience: Optional[int] = None
    qualifications: Optional[List[str]] = None
    hospital: Optional[str] = None
    consultation_fee: Optional[float] = None
    availability: Optional[Dict[str, Any]] = None
    rating: float = 0.0
    total_reviews: int = 0
    is_verified: bool = False


class AdminUserUpdate(ProfileFields):
    email: Optional[str] = None
    role: Optional[Literal["patient", "doctor", "admin"]] = None
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v is not None else v


class AvailabilityUpdate(CamelModel):
    availability: Dict[str, Any] = Field(...)
