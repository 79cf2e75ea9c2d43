import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.query import Caller, QueryOptions
from ..application.services.appointments_service import AppointmentsService
from ..dependencies import get_appointments_service, get_caller, query_options, require_roles
from ..exceptions import ValidationFailed, create_success_response
from ..models import APPOINTMENT_STATUSES
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentUpdate,
    CancelRequest,
    HandleRescheduleRequest,
    RescheduleRequest,
)
from ..schemas.common.common import dump, dump_many
from ..utils import parse_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("")
def list_appointments(
    status: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    if status and status not in APPOINTMENT_STATUSES:
        raise ValidationFailed(f"Invalid status. Use one of: {', '.join(APPOINTMENT_STATUSES)}")
    page = service.list_appointments(
        caller,
        options,
        status=status,
        start_date=parse_date(start_date, "startDate") if start_date else None,
        end_date=parse_date(end_date, "endDate") if end_date else None,
    )
    return create_success_response(
        "Appointments retrieved successfully",
        {"items": dump_many(AppointmentOut, page.items), "pagination": page.page_info()},
    )


# Declared before /{appointment_id} so the literal segments win
@router.get("/available-slots/{doctor_id}")
def available_slots(
    doctor_id: str,
    date: str = Query(...),
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    day = parse_date(date)
    slots = service.available_slots(doctor_id, day)
    return create_success_response("Available slots retrieved successfully", {"date": day.isoformat(), "slots": slots})


@router.get("/doctor/schedule")
def doctor_schedule(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    caller: Caller = Depends(require_roles("doctor")),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appointments = service.doctor_schedule(caller, parse_date(start_date, "startDate"), parse_date(end_date, "endDate"))
    return create_success_response("Schedule retrieved successfully", {"appointments": dump_many(AppointmentOut, appointments)})


@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appt = service.get_appointment(caller, appointment_id)
    return create_success_response("Appointment retrieved successfully", {"appointment": dump(AppointmentOut, appt)})


@router.post("", status_code=201)
def create_appointment(
    body: AppointmentCreate,
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    data = body.model_dump()
    data["pre_consultation_form"] = body.pre_consultation_form.model_dump(by_alias=True)
    appt = service.create(caller, data)
    return create_success_response("Appointment created successfully", {"appointment": dump(AppointmentOut, appt)})


@router.put("/{appointment_id}")
def update_appointment(
    appointment_id: str,
    body: AppointmentUpdate,
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    changes = body.model_dump(exclude_unset=True)
    if body.pre_consultation_form is not None:
        changes["pre_consultation_form"] = body.pre_consultation_form.model_dump(by_alias=True)
    appt = service.update(caller, appointment_id, changes)
    return create_success_response("Appointment updated successfully", {"appointment": dump(AppointmentOut, appt)})


@router.put("/{appointment_id}/confirm")
def confirm_appointment(
    appointment_id: str,
    caller: Caller = Depends(require_roles("doctor")),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appt = service.confirm(caller, appointment_id)
    return create_success_response("Appointment confirmed successfully", {"appointment": dump(AppointmentOut, appt)})


@router.put("/{appointment_id}/cancel")
def cancel_appointment(
    appointment_id: str,
    body: Optional[CancelRequest] = None,
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appt = service.cancel(caller, appointment_id, reason=body.reason if body else None)
    return create_success_response("Appointment cancelled successfully", {"appointment": dump(AppointmentOut, appt)})


@router.put("/{appointment_id}/reschedule")
def request_reschedule(
    appointment_id: str,
    body: RescheduleRequest,
    caller: Caller = Depends(get_caller),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appt = service.request_reschedule(caller, appointment_id, body.new_date, body.new_time, body.reason)
    return create_success_response("Reschedule request submitted successfully", {"appointment": dump(AppointmentOut, appt)})


@router.put("/{appointment_id}/handle-reschedule")
def handle_reschedule(
    appointment_id: str,
    body: HandleRescheduleRequest,
    caller: Caller = Depends(require_roles("doctor", "admin")),
    service: AppointmentsService = Depends(get_appointments_service),
):
    appt = service.handle_reschedule(caller, appointment_id, body.action)
    return create_success_response(f"Reschedule request {appt.reschedule_status}", {"appointment": dump(AppointmentOut, appt)})


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: AppointmentsService = Depends(get_appointments_service),
):
    service.delete(appointment_id)
    return create_success_response("Appointment deleted successfully")
