# telehealth/schemas/appointments/appointment.py
import datetime as dt
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, Field, field_validator

from ...application.scheduling import is_valid_time
from ..common.common import CamelModel


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_time(v):
        raise ValueError("Time must be in HH:MM format")
    return v


TimeLabel = Annotated[str, AfterValidator(_check_time)]


class PreConsultationForm(CamelModel):
    symptoms: List[str] = []
    current_medications: List[str] = []
    allergies: List[str] = []
    medical_history: Optional[str] = Field(None, max_length=2000)
    additional_notes: Optional[str] = Field(None, max_length=1000)


def _require_symptoms(form: PreConsultationForm) -> PreConsultationForm:
    if not [s for s in form.symptoms if s.strip()]:
        raise ValueError("At least one symptom must be specified")
    return form


class AppointmentCreate(CamelModel):
    doctor_id: str
    patient_id: Optional[str] = None
    date: dt.date
    time: TimeLabel
    reason: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    pre_consultation_form: PreConsultationForm

    @field_validator("pre_consultation_form")
    @classmethod
    def require_symptoms(cls, v: PreConsultationForm):
        return _require_symptoms(v)


class AppointmentUpdate(CamelModel):
    date: Optional[dt.date] = None
    time: Optional[TimeLabel] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    pre_consultation_form: Optional[PreConsultationForm] = None

    @field_validator("pre_consultation_form")
    @classmethod
    def require_symptoms(cls, v: Optional[PreConsultationForm]):
        return v if v is None else _require_symptoms(v)


class CancelRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class RescheduleRequest(CamelModel):
    new_date: dt.date
    new_time: TimeLabel
    reason: str = Field(..., min_length=1, max_length=500)


class HandleRescheduleRequest(CamelModel):
    action: Literal["approve", "reject"]


class AppointmentOut(CamelModel):
    id: str
    patient_id: str
    doctor_id: str
    date: dt.date
    time: str
    status: str
    reason: str
    notes: Optional[str] = None
    pre_consultation_form: Optional[dict] = None
    reschedule_status: str = "none"
    reschedule_requested_by: Optional[str] = None
    reschedule_requested_at: Optional[dt.datetime] = None
    reschedule_reason: Optional[str] = None
    reschedule_new_date: Optional[dt.date] = None
    reschedule_new_time: Optional[str] = None
    reschedule_approved_by: Optional[str] = None
    reschedule_approved_at: Optional[dt.datetime] = None
    consultation_id: Optional[str] = None
    prescription_id: Optional[str] = None
    payment_id: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
