# telehealth/schemas/prescriptions/prescription.py
import datetime as dt
from typing import List, Optional

from pydantic import Field

from ..common.common import CamelModel


class Medication(CamelModel):
    name: str = Field(..., min_length=1)
    dosage: str = Field(..., min_length=1)
    frequency: str = Field(..., min_length=1)
    duration: str = Field(..., min_length=1)
    instructions: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)


class Diagnosis(CamelModel):
    condition: str = Field(..., min_length=1)
    icd_code: Optional[str] = None
    notes: Optional[str] = None


class PrescriptionCreate(CamelModel):
    patient_id: str
    appointment_id: Optional[str] = None
    consultation_id: Optional[str] = None
    medications: List[Medication] = Field(..., min_length=1)
    diagnoses: List[Diagnosis] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=1000)
    follow_up_date: Optional[dt.date] = None


class PrescriptionUpdate(CamelModel):
    medications: Optional[List[Medication]] = Field(None, min_length=1)
    diagnoses: Optional[List[Diagnosis]] = Field(None, min_length=1)
    notes: Optional[str] = Field(None, max_length=1000)
    follow_up_date: Optional[dt.date] = None
    is_active: Optional[bool] = None


class PrescriptionOut(CamelModel):
    id: str
    patient_id: str
    doctor_id: str
    appointment_id: Optional[str] = None
    consultation_id: Optional[str] = None
    medications: List[dict]
    diagnoses: List[dict]
    notes: Optional[str] = None
    follow_up_date: Optional[dt.date] = None
    is_active: bool
    created_at: dt.datetime
