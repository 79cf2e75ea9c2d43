# telehealth/schemas/auth/auth.py
import datetime as dt
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..common.common import CamelModel, validate_email, validate_phone

NAME_PATTERN = re.compile(r"^[^\d\W][\w\s.'\-]*$", re.UNICODE)


class ProfileFields(CamelModel):
    """Fields a user may set on themselves; which ones apply depends on role."""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    date_of_birth: Optional[dt.date] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    medical_history: Optional[List[Dict[str, Any]]] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0, le=80)
    qualifications: Optional[List[str]] = None
    hospital: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0)
    availability: Optional[Dict[str, Any]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not NAME_PATTERN.match(v):
            raise ValueError("Name can only contain letters, spaces, and hyphens")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v):
        if v is not None and v > dt.date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class RegisterRequest(ProfileFields):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    password: str = Field(..., min_length=6, max_length=128)
    role: Literal["patient", "doctor"] = "patient"

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class LoginRequest(CamelModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ProfileUpdate(ProfileFields):
    pass


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)
