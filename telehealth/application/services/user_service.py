import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import DuplicateField, NotFound, ValidationFailed
from ...models import ROLES
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import UserRepository
from ..query import Page, QueryOptions
from ..scheduling import validate_availability

logger = logging.getLogger(__name__)

ADMIN_EDITABLE = (
    "name", "email", "phone", "address", "role", "date_of_birth", "gender",
    "emergency_contact", "medical_history", "specialization", "license_number",
    "experience", "qualifications", "hospital", "consultation_fee",
    "availability", "is_verified", "is_active",
)


@dataclass
class UserService:
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def _get(self, user_id: str):
        user = self.user_repo.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def list_users(self, options: QueryOptions, role: Optional[str] = None, is_active: Optional[bool] = None) -> Page:
        filters: Dict[str, Any] = {}
        if role:
            filters["role"] = role
        if is_active is not None:
            filters["is_active"] = is_active
        return self.user_repo.list(filters, options)

    def list_doctors(self, options: QueryOptions, specialization: Optional[str] = None) -> Page:
        filters: Dict[str, Any] = {"role": "doctor", "is_active": True}
        if specialization:
            filters["specialization"] = specialization
        if options.sort_field is None:
            options = QueryOptions(options.page, options.limit, "rating", True, options.search)
        return self.user_repo.list(filters, options)

    def list_patients(self, options: QueryOptions) -> Page:
        return self.user_repo.list({"role": "patient"}, options)

    def get_user(self, user_id: str):
        return self._get(user_id)

    def update_user(self, user_id: str, changes: Dict[str, Any], actor_email: Optional[str] = None):
        user = self._get(user_id)
        data = {k: v for k, v in changes.items() if k in ADMIN_EDITABLE and v is not None}
        if "role" in data and data["role"] not in ROLES:
            raise ValidationFailed("Invalid role")
        if "email" in data:
            data["email"] = data["email"].strip().lower()
            if self.user_repo.email_taken(data["email"], exclude_id=user.id):
                raise DuplicateField("Email is already in use")
        if "availability" in data:
            data["availability"] = validate_availability(data["availability"])
        if not data:
            return user

        updated = self.user_repo.update(user.id, data)
        if "role" in data and self.audit is not None:
            self.audit.log("role_change", actor_email or "", user_id=user.id, details={"role": data["role"]})
        return updated

    def set_active(self, user_id: str, active: bool):
        user = self._get(user_id)
        logger.info(f"{'Activating' if active else 'Deactivating'} user {user.id}")
        return self.user_repo.update(user.id, {"is_active": active})

    def delete_user(self, user_id: str) -> None:
        # Soft delete; appointments keep pointing at the row
        self.set_active(user_id, False)

    def update_availability(self, user, availability: Dict[str, Any]):
        if user.role != "doctor":
            raise ValidationFailed("Only doctors have availability")
        normalized = validate_availability(availability)
        return self.user_repo.update(user.id, {"availability": normalized})
