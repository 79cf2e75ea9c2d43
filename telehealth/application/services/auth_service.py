import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import Conflict, DuplicateField, Forbidden, Unauthorized, ValidationFailed
from ...models import utcnow
from ...utils import hash_password, verify_password
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import UserRepository
from ..scheduling import validate_availability

logger = logging.getLogger(__name__)

DOCTOR_FIELDS = ("specialization", "license_number", "experience", "qualifications", "hospital", "consultation_fee", "availability")
PATIENT_FIELDS = ("date_of_birth", "gender", "emergency_contact", "medical_history")
COMMON_FIELDS = ("name", "phone", "address")


@dataclass
class AuthService:
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def _audit(self, action: str, email: str, user_id: Optional[str] = None, ip_address: Optional[str] = None, success: bool = True, details: Optional[Dict[str, Any]] = None) -> None:
        if self.audit is not None:
            self.audit.log(action, email, user_id=user_id, ip_address=ip_address, success=success, details=details)

    def register(self, data: Dict[str, Any], ip_address: Optional[str] = None):
        email = data["email"].strip().lower()
        role = data.get("role") or "patient"
        if role not in ("patient", "doctor"):
            raise ValidationFailed("Role must be patient or doctor")
        if self.user_repo.email_taken(email):
            self._audit("register", email, ip_address=ip_address, success=False, details={"reason": "email_taken"})
            raise DuplicateField("User already exists with this email")

        if role == "doctor" and not (data.get("license_number") and data.get("specialization")):
            raise ValidationFailed("License number and specialization are required for doctors")

        record: Dict[str, Any] = {
            "name": data["name"].strip(),
            "email": email,
            "password_hash": hash_password(data["password"]),
            "role": role,
        }
        allowed = COMMON_FIELDS + (DOCTOR_FIELDS if role == "doctor" else PATIENT_FIELDS)
        for key in allowed:
            if data.get(key) is not None:
                record[key] = data[key]
        if record.get("availability") is not None:
            record["availability"] = validate_availability(record["availability"])
        # Doctors are verified by an admin later
        record["is_verified"] = False

        user = self.user_repo.create(record)
        logger.info(f"Registered {role} {user.id}")
        self._audit("register", email, user_id=user.id, ip_address=ip_address, details={"role": role})
        return user

    def login(self, email: str, password: str, ip_address: Optional[str] = None):
        user = self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            self._audit("login", email, ip_address=ip_address, success=False)
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            self._audit("login", email, user_id=user.id, ip_address=ip_address, success=False, details={"reason": "inactive"})
            raise Forbidden("Account is deactivated")

        user = self.user_repo.update(user.id, {"last_login": utcnow()})
        self._audit("login", email, user_id=user.id, ip_address=ip_address)
        return user

    def update_profile(self, user, changes: Dict[str, Any]):
        allowed = COMMON_FIELDS + (DOCTOR_FIELDS if user.role == "doctor" else PATIENT_FIELDS if user.role == "patient" else ())
        data = {k: v for k, v in changes.items() if k in allowed and v is not None}
        if "availability" in data:
            data["availability"] = validate_availability(data["availability"])
        if not data:
            return user
        return self.user_repo.update(user.id, data)

    def change_password(self, user, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            self._audit("change_password", user.email, user_id=user.id, success=False)
            raise Unauthorized("Current password is incorrect")
        if current_password == new_password:
            raise Conflict("New password must differ from the current password")
        self.user_repo.update(user.id, {"password_hash": hash_password(new_password)})
        self._audit("change_password", user.email, user_id=user.id)
