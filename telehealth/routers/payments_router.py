import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..application.query import Caller, QueryOptions
from ..application.services.payment_service import PaymentService
from ..dependencies import get_caller, get_payment_service, query_options, require_roles
from ..exceptions import create_success_response
from ..schemas.common.common import dump, dump_many
from ..schemas.payments.payment import ConfirmPaymentRequest, CreateIntentRequest, PaymentOut, RefundRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/create-intent", status_code=201)
def create_intent(
    body: CreateIntentRequest,
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
):
    payment, client_secret = service.create_intent(caller, body.appointment_id, amount=body.amount, payment_method=body.payment_method)
    return create_success_response(
        "Payment intent created successfully",
        {"payment": dump(PaymentOut, payment), "clientSecret": client_secret},
    )


@router.post("/confirm")
def confirm_payment(
    body: ConfirmPaymentRequest,
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.confirm(caller, body.payment_intent_id)
    return create_success_response("Payment confirmed successfully", {"payment": dump(PaymentOut, payment)})


@router.get("/history")
def payment_history(
    status: Optional[str] = None,
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
):
    page = service.history(caller, options, status=status)
    return create_success_response(
        "Payment history retrieved successfully",
        {"items": dump_many(PaymentOut, page.items), "pagination": page.page_info()},
    )


@router.get("/{payment_id}")
def get_payment(
    payment_id: str,
    caller: Caller = Depends(get_caller),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.get_payment(caller, payment_id)
    return create_success_response("Payment retrieved successfully", {"payment": dump(PaymentOut, payment)})


@router.post("/{payment_id}/refund")
def refund_payment(
    payment_id: str,
    body: Optional[RefundRequest] = None,
    caller: Caller = Depends(require_roles("admin")),
    service: PaymentService = Depends(get_payment_service),
):
    body = body or RefundRequest()
    payment = service.refund(payment_id, amount=body.amount, reason=body.reason)
    logger.info(f"Payment {payment.id} refunded by admin {caller.id}")
    return create_success_response("Payment refunded successfully", {"payment": dump(PaymentOut, payment)})
