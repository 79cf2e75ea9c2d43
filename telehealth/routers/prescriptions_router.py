from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.query import Caller, QueryOptions
from ..application.services.prescription_service import PrescriptionService
from ..dependencies import get_caller, get_prescription_service, query_options, require_roles
from ..exceptions import create_success_response
from ..schemas.common.common import dump, dump_many
from ..schemas.prescriptions.prescription import PrescriptionCreate, PrescriptionOut, PrescriptionUpdate

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


@router.get("")
def list_prescriptions(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(get_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    page = service.list_prescriptions(caller, options, is_active=is_active)
    return create_success_response(
        "Prescriptions retrieved successfully",
        {"items": dump_many(PrescriptionOut, page.items), "pagination": page.page_info()},
    )


@router.get("/{prescription_id}")
def get_prescription(
    prescription_id: str,
    caller: Caller = Depends(get_caller),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.get_prescription(caller, prescription_id)
    return create_success_response("Prescription retrieved successfully", {"prescription": dump(PrescriptionOut, prescription)})


@router.post("", status_code=201)
def create_prescription(
    body: PrescriptionCreate,
    caller: Caller = Depends(require_roles("doctor")),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.create(caller, body.model_dump())
    return create_success_response("Prescription created successfully", {"prescription": dump(PrescriptionOut, prescription)})


@router.put("/{prescription_id}")
def update_prescription(
    prescription_id: str,
    body: PrescriptionUpdate,
    caller: Caller = Depends(require_roles("doctor")),
    service: PrescriptionService = Depends(get_prescription_service),
):
    prescription = service.update(caller, prescription_id, body.model_dump(exclude_unset=True))
    return create_success_response("Prescription updated successfully", {"prescription": dump(PrescriptionOut, prescription)})


@router.delete("/{prescription_id}")
def delete_prescription(
    prescription_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: PrescriptionService = Depends(get_prescription_service),
):
    service.delete(prescription_id)
    return create_success_response("Prescription deleted successfully")
