from typing import Optional

from fastapi import APIRouter, Depends

from ..application.query import Caller, QueryOptions
from ..application.services.hospital_service import HospitalService
from ..dependencies import get_caller, get_hospital_service, query_options, require_roles
from ..exceptions import create_success_response
from ..schemas.common.common import dump, dump_many
from ..schemas.hospitals.hospital import HospitalCreate, HospitalOut, HospitalUpdate, ReviewRequest

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])


# Public routes
@router.get("")
def list_hospitals(
    type: Optional[str] = None,
    city: Optional[str] = None,
    specialization: Optional[str] = None,
    options: QueryOptions = Depends(query_options),
    service: HospitalService = Depends(get_hospital_service),
):
    page = service.list_hospitals(options, type=type, city=city, specialization=specialization)
    return create_success_response(
        "Hospitals retrieved successfully",
        {"items": dump_many(HospitalOut, page.items), "pagination": page.page_info()},
    )


@router.get("/slug/{slug}")
def get_hospital_by_slug(slug: str, service: HospitalService = Depends(get_hospital_service)):
    hospital = service.get_by_slug(slug)
    return create_success_response("Hospital retrieved successfully", {"hospital": dump(HospitalOut, hospital)})


@router.get("/{hospital_id}")
def get_hospital(hospital_id: str, service: HospitalService = Depends(get_hospital_service)):
    hospital = service.get(hospital_id)
    return create_success_response("Hospital retrieved successfully", {"hospital": dump(HospitalOut, hospital)})


# Protected routes
@router.post("/{hospital_id}/reviews", status_code=201)
def add_review(
    hospital_id: str,
    body: ReviewRequest,
    caller: Caller = Depends(get_caller),
    service: HospitalService = Depends(get_hospital_service),
):
    hospital = service.add_review(caller, hospital_id, body.rating, body.comment)
    return create_success_response("Review added successfully", {"hospital": dump(HospitalOut, hospital)})


# Admin only routes
@router.post("", status_code=201)
def create_hospital(
    body: HospitalCreate,
    caller: Caller = Depends(require_roles("admin")),
    service: HospitalService = Depends(get_hospital_service),
):
    hospital = service.create(body.model_dump())
    return create_success_response("Hospital created successfully", {"hospital": dump(HospitalOut, hospital)})


@router.put("/{hospital_id}")
def update_hospital(
    hospital_id: str,
    body: HospitalUpdate,
    caller: Caller = Depends(require_roles("admin")),
    service: HospitalService = Depends(get_hospital_service),
):
    hospital = service.update(hospital_id, body.model_dump(exclude_unset=True))
    return create_success_response("Hospital updated successfully", {"hospital": dump(HospitalOut, hospital)})


@router.put("/{hospital_id}/verify")
def verify_hospital(
    hospital_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: HospitalService = Depends(get_hospital_service),
):
    hospital = service.verify(caller, hospital_id)
    return create_success_response("Hospital verified successfully", {"hospital": dump(HospitalOut, hospital)})


@router.delete("/{hospital_id}")
def delete_hospital(
    hospital_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: HospitalService = Depends(get_hospital_service),
):
    service.delete(hospital_id)
    return create_success_response("Hospital deleted successfully")
