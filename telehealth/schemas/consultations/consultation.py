# telehealth/schemas/consultations/consultation.py
import datetime as dt
from typing import List, Optional

from pydantic import Field

from ..common.common import CamelModel


class EndConsultationRequest(CamelModel):
    notes: Optional[str] = Field(None, max_length=2000)
    diagnosis: Optional[List[str]] = None
    symptoms: Optional[List[str]] = None


class NotesUpdate(CamelModel):
    notes: str = Field(..., max_length=2000)


class ConsultationOut(CamelModel):
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    duration: Optional[int] = Field(None, validation_alias="duration_minutes")
    status: str
    notes: Optional[str] = None
    diagnosis: Optional[List[str]] = None
    symptoms: Optional[List[str]] = None
    prescription_id: Optional[str] = None
    created_at: dt.datetime
