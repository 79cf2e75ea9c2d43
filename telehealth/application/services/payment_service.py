import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import Forbidden, InvalidState, NotFound, ValidationFailed
from ...models import PAYMENT_METHODS, utcnow
from ..ports.crud_repo import CrudRepository
from ..ports.notifier import Notifier
from ..ports.user_repo import UserRepository
from ..query import Caller, Page, QueryOptions
from .appointments_service import AppointmentsService

logger = logging.getLogger(__name__)


class StubGateway:
    """Local stand-in for the card gateway: hands out intent and transaction
    ids without any network call."""

    def create_intent(self, amount: float, currency: str) -> Dict[str, str]:
        intent_id = f"pi_{uuid.uuid4().hex}"
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_{uuid.uuid4().hex[:12]}"}

    def confirm(self, intent_id: str) -> str:
        return f"txn_{uuid.uuid4().hex}"


@dataclass
class PaymentService:
    repo: CrudRepository
    user_repo: UserRepository
    appointments: AppointmentsService
    currency: str = "NPR"
    gateway: Any = None
    notifier: Optional[Notifier] = None

    def __post_init__(self):
        if self.gateway is None:
            self.gateway = StubGateway()

    def _get(self, payment_id: str):
        payment = self.repo.get(payment_id)
        if payment is None:
            raise NotFound("Payment not found")
        return payment

    def history(self, caller: Caller, options: QueryOptions, status: Optional[str] = None) -> Page:
        filters = {"status": status} if status else {}
        return self.repo.list(filters, options, caller)

    def get_payment(self, caller: Caller, payment_id: str):
        payment = self._get(payment_id)
        if not caller.is_admin and caller.id not in (payment.patient_id, payment.doctor_id):
            raise Forbidden("Not authorized to access this payment")
        return payment

    def create_intent(self, caller: Caller, appointment_id: str, amount: Optional[float] = None, payment_method: str = "stripe"):
        if payment_method not in PAYMENT_METHODS:
            raise ValidationFailed("Invalid payment method")
        appt = self.appointments.get_appointment(caller, appointment_id)
        if appt.status == "cancelled":
            raise InvalidState("Cannot pay for a cancelled appointment")

        if amount is None:
            doctor = self.user_repo.get(appt.doctor_id)
            amount = (doctor.consultation_fee if doctor is not None else None) or 0
        if amount < 0:
            raise ValidationFailed("Amount must not be negative")

        intent = self.gateway.create_intent(amount, self.currency)
        payment = self.repo.create({
            "appointment_id": appt.id,
            "patient_id": appt.patient_id,
            "doctor_id": appt.doctor_id,
            "amount": amount,
            "currency": self.currency,
            "payment_method": payment_method,
            "status": "pending",
            "payment_intent_id": intent["id"],
        })
        self.appointments.link(appt.id, payment_id=payment.id)
        logger.info(f"Payment intent {intent['id']} created for appointment {appt.id}: {amount} {self.currency}")
        return payment, intent["client_secret"]

    def confirm(self, caller: Caller, payment_intent_id: str):
        payment = self.repo.find_one({"payment_intent_id": payment_intent_id})
        if payment is None:
            raise NotFound("Payment not found")
        if not caller.is_admin and caller.id != payment.patient_id:
            raise Forbidden("Not authorized to confirm this payment")
        if payment.status != "pending":
            raise InvalidState(f"Payment is already {payment.status}")

        transaction_id = self.gateway.confirm(payment_intent_id)
        payment = self.repo.update(payment.id, {
            "status": "completed",
            "transaction_id": transaction_id,
            "receipt_url": f"/payments/{payment.id}/receipt",
        })
        if self.notifier is not None:
            self.notifier.notify(payment.patient_id, "payment_success", "Payment received",
                                 f"Payment of {payment.amount} {payment.currency} completed.",
                                 link=f"/payments/{payment.id}")
        return payment

    def refund(self, payment_id: str, amount: Optional[float] = None, reason: Optional[str] = None):
        payment = self._get(payment_id)
        if payment.status != "completed":
            raise InvalidState("Only completed payments can be refunded")
        refund_amount = payment.amount if amount is None else amount
        if refund_amount <= 0 or refund_amount > payment.amount:
            raise ValidationFailed("Refund amount cannot exceed payment amount")

        logger.info(f"Refunding {refund_amount} of payment {payment.id}")
        return self.repo.update(payment.id, {
            "status": "refunded",
            "refund_amount": refund_amount,
            "refund_reason": reason,
            "refunded_at": utcnow(),
        })
