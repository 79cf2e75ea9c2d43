# telehealth/models.py
import datetime as dt
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

ROLES = ("patient", "doctor", "admin")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")
ACTIVE_APPOINTMENT_STATUSES = ("pending", "confirmed")
TERMINAL_APPOINTMENT_STATUSES = ("completed", "cancelled")
RESCHEDULE_STATUSES = ("none", "pending", "approved", "rejected")

CONSULTATION_STATUSES = ("scheduled", "active", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "processing", "completed", "failed", "refunded", "cancelled")
PAYMENT_METHODS = ("stripe", "esewa", "cash", "bank_transfer")
CURRENCIES = ("NPR", "USD")
NOTIFICATION_TYPES = (
    "appointment_created",
    "appointment_confirmed",
    "appointment_cancelled",
    "appointment_rescheduled",
    "appointment_reminder",
    "consultation_started",
    "consultation_ended",
    "prescription_created",
    "payment_success",
    "payment_failed",
    "system_announcement",
    "message",
    "other",
)
NOTIFICATION_PRIORITIES = ("low", "medium", "high", "urgent")
HOSPITAL_TYPES = ("public", "private", "government", "clinic", "hospital")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def _json_column() -> Column:
    return Column(JSON, nullable=True)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(max_length=50)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str
    role: str = Field(default="patient", index=True)  # patient, doctor, admin
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None  # male, female, other
    emergency_contact: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    medical_history: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=_json_column())

    # Doctor specific fields
    specialization: Optional[str] = Field(default=None, index=True)
    license_number: Optional[str] = None
    experience: Optional[int] = None
    qualifications: Optional[List[str]] = Field(default=None, sa_column=_json_column())
    hospital: Optional[str] = None
    consultation_fee: Optional[float] = None
    availability: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    rating: float = Field(default=0.0)
    total_reviews: int = Field(default=0)

    is_verified: bool = Field(default=False)
    is_active: bool = Field(default=True)
    last_login: Optional[dt.datetime] = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per doctor slot; completed/cancelled rows free the slot
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "date",
            "time",
            unique=True,
            sqlite_where=text("status IN ('pending', 'confirmed')"),
            postgresql_where=text("status IN ('pending', 'confirmed')"),
        ),
        Index("ix_appointments_patient_date", "patient_id", "date"),
        Index("ix_appointments_doctor_date", "doctor_id", "date"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    patient_id: str = Field(foreign_key="users.id")
    doctor_id: str = Field(foreign_key="users.id")
    date: dt.date
    time: str  # HH:MM
    status: str = Field(default="pending", index=True)  # pending, confirmed, completed, cancelled
    reason: str = Field(max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)
    pre_consultation_form: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())

    reschedule_status: str = Field(default="none")  # none, pending, approved, rejected
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

    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)


class Consultation(SQLModel, table=True):
    __tablename__ = "consultations"

    id: str = Field(default_factory=new_id, primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", unique=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    status: str = Field(default="scheduled", index=True)  # scheduled, active, completed, cancelled
    notes: Optional[str] = Field(default=None, max_length=2000)
    diagnosis: Optional[List[str]] = Field(default=None, sa_column=_json_column())
    symptoms: Optional[List[str]] = Field(default=None, sa_column=_json_column())
    prescription_id: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)

    @property
    def duration_minutes(self) -> Optional[int]:
        if not self.start_time or not self.end_time:
            return None
        return round((self.end_time - self.start_time).total_seconds() / 60)


class Prescription(SQLModel, table=True):
    __tablename__ = "prescriptions"

    id: str = Field(default_factory=new_id, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    appointment_id: Optional[str] = Field(default=None, index=True)
    consultation_id: Optional[str] = Field(default=None, index=True)
    medications: List[Dict[str, Any]] = Field(default_factory=list, sa_column=_json_column())
    diagnoses: List[Dict[str, Any]] = Field(default_factory=list, sa_column=_json_column())
    notes: Optional[str] = Field(default=None, max_length=1000)
    follow_up_date: Optional[dt.date] = None
    is_active: bool = Field(default=True, index=True)
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: str = Field(default_factory=new_id, primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", index=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    amount: float
    currency: str = Field(default="NPR")  # NPR, USD
    payment_method: str  # stripe, esewa, cash, bank_transfer
    status: str = Field(default="pending", index=True)
    transaction_id: Optional[str] = Field(default=None, index=True)
    payment_intent_id: Optional[str] = Field(default=None, index=True)
    receipt_url: Optional[str] = None
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[dt.datetime] = None
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    type: str  # see NOTIFICATION_TYPES
    title: str = Field(max_length=200)
    message: str = Field(max_length=1000)
    is_read: bool = Field(default=False)
    read_at: Optional[dt.datetime] = None
    link: Optional[str] = None
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    priority: str = Field(default="medium")  # low, medium, high, urgent
    expires_at: Optional[dt.datetime] = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)


class Hospital(SQLModel, table=True):
    __tablename__ = "hospitals"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(max_length=100, unique=True)
    slug: str = Field(unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=1000)

    street: str
    city: str = Field(index=True)
    state: str
    zip_code: Optional[str] = None
    country: str = Field(default="Nepal")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    phone: str
    email: Optional[str] = None
    website: Optional[str] = None
    emergency_contact: Optional[str] = None

    type: str = Field(default="hospital")  # public, private, government, clinic, hospital
    specializations: Optional[List[str]] = Field(default=None, sa_column=_json_column())
    facilities: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=_json_column())
    operating_hours: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    emergency_services: bool = Field(default=False)
    ambulance_service: bool = Field(default=False)

    rating: float = Field(default=0.0)
    total_reviews: int = Field(default=0)
    reviews: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=_json_column())

    is_verified: bool = Field(default=False)
    verified_by: Optional[str] = None
    verified_at: Optional[dt.datetime] = None
    is_active: bool = Field(default=True)
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)
