from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Type

from sqlmodel import SQLModel

from ....application.query import Caller
from ....models import Appointment, Consultation, Hospital, Notification, Payment, Prescription, User


@dataclass(frozen=True)
class ResourcePolicy:
    """Per-resource query rules consumed by SqlCrudRepository."""

    model: Type[SQLModel]
    label: str
    search_fields: Tuple[str, ...] = ()
    sort_fields: Tuple[str, ...] = ("created_at",)
    default_sort: str = "created_at"
    default_descending: bool = True
    # role -> column that must equal the caller id
    owner_fields: Dict[str, str] = field(default_factory=dict)
    admin_sees_all: bool = True

    def owner_filter(self, caller: Optional[Caller]) -> Optional[Tuple[str, str]]:
        if caller is None:
            return None
        if caller.is_admin and self.admin_sees_all:
            return None
        column = self.owner_fields.get(caller.role)
        if column is None:
            return None
        return column, caller.id


PARTICIPANT_OWNERSHIP = {"patient": "patient_id", "doctor": "doctor_id"}

USER_POLICY = ResourcePolicy(
    model=User,
    label="User",
    search_fields=("name", "email", "phone"),
    sort_fields=("created_at", "name", "email", "rating", "experience", "consultation_fee"),
)

APPOINTMENT_POLICY = ResourcePolicy(
    model=Appointment,
    label="Appointment",
    search_fields=("reason",),
    sort_fields=("date", "time", "created_at", "status"),
    default_sort="date",
    owner_fields=PARTICIPANT_OWNERSHIP,
)

CONSULTATION_POLICY = ResourcePolicy(
    model=Consultation,
    label="Consultation",
    search_fields=("notes",),
    sort_fields=("start_time", "end_time", "created_at", "status"),
    default_sort="start_time",
    owner_fields=PARTICIPANT_OWNERSHIP,
)

PRESCRIPTION_POLICY = ResourcePolicy(
    model=Prescription,
    label="Prescription",
    search_fields=("notes",),
    sort_fields=("created_at", "follow_up_date"),
    owner_fields=PARTICIPANT_OWNERSHIP,
)

PAYMENT_POLICY = ResourcePolicy(
    model=Payment,
    label="Payment",
    search_fields=("transaction_id", "payment_intent_id"),
    sort_fields=("created_at", "amount", "status"),
    owner_fields=PARTICIPANT_OWNERSHIP,
)

NOTIFICATION_POLICY = ResourcePolicy(
    model=Notification,
    label="Notification",
    search_fields=("title", "message"),
    sort_fields=("created_at", "priority"),
    owner_fields={"patient": "user_id", "doctor": "user_id", "admin": "user_id"},
    admin_sees_all=False,
)

HOSPITAL_POLICY = ResourcePolicy(
    model=Hospital,
    label="Hospital",
    search_fields=("name", "city", "description"),
    sort_fields=("created_at", "name", "rating", "city"),
    default_sort="rating",
)
