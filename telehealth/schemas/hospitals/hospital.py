# telehealth/schemas/hospitals/hospital.py
import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..common.common import CamelModel, validate_phone

HospitalType = Literal["public", "private", "government", "clinic", "hospital"]


class HospitalCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: Optional[str] = None
    country: str = "Nepal"
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    phone: str
    email: Optional[str] = None
    website: Optional[str] = None
    emergency_contact: Optional[str] = None
    type: HospitalType = "hospital"
    specializations: Optional[List[str]] = None
    facilities: Optional[List[Dict[str, Any]]] = None
    operating_hours: Optional[Dict[str, Any]] = None
    emergency_services: bool = False
    ambulance_service: bool = False

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class HospitalUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    emergency_contact: Optional[str] = None
    type: Optional[HospitalType] = None
    specializations: Optional[List[str]] = None
    facilities: Optional[List[Dict[str, Any]]] = None
    operating_hours: Optional[Dict[str, Any]] = None
    emergency_services: Optional[bool] = None
    ambulance_service: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ReviewRequest(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class HospitalOut(CamelModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    street: str
    city: str
    state: str
    zip_code: Optional[str] = None
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: str
    email: Optional[str] = None
    website: Optional[str] = None
    emergency_contact: Optional[str] = None
    type: str
    specializations: Optional[List[str]] = None
    facilities: Optional[List[Dict[str, Any]]] = None
    operating_hours: Optional[Dict[str, Any]] = None
    emergency_services: bool
    ambulance_service: bool
    rating: float
    total_reviews: int
    reviews: Optional[List[Dict[str, Any]]] = None
    is_verified: bool
    is_active: bool
    created_at: dt.datetime
