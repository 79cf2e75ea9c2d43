from typing import Optional

from fastapi import APIRouter, Depends

from ..application.query import Caller, QueryOptions
from ..application.services.consultation_service import ConsultationService
from ..dependencies import get_caller, get_consultation_service, query_options, require_roles
from ..exceptions import create_success_response
from ..schemas.common.common import dump, dump_many
from ..schemas.consultations.consultation import ConsultationOut, EndConsultationRequest, NotesUpdate

router = APIRouter(prefix="/consultations", tags=["Consultations"])


@router.get("")
def list_consultations(
    status: Optional[str] = None,
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(get_caller),
    service: ConsultationService = Depends(get_consultation_service),
):
    page = service.list_consultations(caller, options, status=status)
    return create_success_response(
        "Consultations retrieved successfully",
        {"items": dump_many(ConsultationOut, page.items), "pagination": page.page_info()},
    )


@router.get("/{consultation_id}")
def get_consultation(
    consultation_id: str,
    caller: Caller = Depends(get_caller),
    service: ConsultationService = Depends(get_consultation_service),
):
    consultation = service.get_consultation(caller, consultation_id)
    return create_success_response("Consultation retrieved successfully", {"consultation": dump(ConsultationOut, consultation)})


@router.post("/{appointment_id}/start", status_code=201)
def start_consultation(
    appointment_id: str,
    caller: Caller = Depends(require_roles("doctor")),
    service: ConsultationService = Depends(get_consultation_service),
):
    consultation = service.start(caller, appointment_id)
    return create_success_response("Consultation started successfully", {"consultation": dump(ConsultationOut, consultation)})


@router.put("/{consultation_id}/end")
def end_consultation(
    consultation_id: str,
    body: Optional[EndConsultationRequest] = None,
    caller: Caller = Depends(require_roles("doctor")),
    service: ConsultationService = Depends(get_consultation_service),
):
    body = body or EndConsultationRequest()
    consultation = service.end(caller, consultation_id, notes=body.notes, diagnosis=body.diagnosis, symptoms=body.symptoms)
    return create_success_response("Consultation ended successfully", {"consultation": dump(ConsultationOut, consultation)})


@router.put("/{consultation_id}/notes")
def update_notes(
    consultation_id: str,
    body: NotesUpdate,
    caller: Caller = Depends(require_roles("doctor")),
    service: ConsultationService = Depends(get_consultation_service),
):
    consultation = service.update_notes(caller, consultation_id, body.notes)
    return create_success_response("Consultation notes updated successfully", {"consultation": dump(ConsultationOut, consultation)})
