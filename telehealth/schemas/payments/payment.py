# telehealth/schemas/payments/payment.py
import datetime as dt
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from ..common.common import CamelModel


class CreateIntentRequest(CamelModel):
    appointment_id: str
    amount: Optional[float] = Field(None, ge=0)
    payment_method: Literal["stripe", "esewa", "cash", "bank_transfer"] = "stripe"


class ConfirmPaymentRequest(CamelModel):
    payment_intent_id: str
    payment_method_id: Optional[str] = None


class RefundRequest(CamelModel):
    amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class PaymentOut(CamelModel):
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    amount: float
    currency: str
    payment_method: str
    status: str
    transaction_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    receipt_url: Optional[str] = None
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[dt.datetime] = None
    details: Optional[Dict[str, Any]] = None
    created_at: dt.datetime
