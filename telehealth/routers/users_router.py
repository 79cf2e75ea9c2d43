from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.query import Caller, QueryOptions
from ..application.services.user_service import UserService
from ..dependencies import get_caller, get_current_user, get_user_service, query_options, require_roles
from ..exceptions import Forbidden, create_success_response
from ..models import User
from ..schemas.common.common import dump, dump_many
from ..schemas.users.user import AdminUserUpdate, AvailabilityUpdate, DoctorOut, UserOut

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    page = service.list_users(options, role=role, is_active=is_active)
    return create_success_response(
        "Users retrieved successfully",
        {"items": dump_many(UserOut, page.items), "pagination": page.page_info()},
    )


@router.get("/doctors")
def list_doctors(
    specialization: Optional[str] = None,
    options: QueryOptions = Depends(query_options),
    service: UserService = Depends(get_user_service),
):
    page = service.list_doctors(options, specialization=specialization)
    return create_success_response(
        "Doctors retrieved successfully",
        {"items": dump_many(DoctorOut, page.items), "pagination": page.page_info()},
    )


@router.get("/patients")
def list_patients(
    options: QueryOptions = Depends(query_options),
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    page = service.list_patients(options)
    return create_success_response(
        "Patients retrieved successfully",
        {"items": dump_many(UserOut, page.items), "pagination": page.page_info()},
    )


@router.put("/availability")
def update_availability(
    body: AvailabilityUpdate,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    if user.role != "doctor":
        raise Forbidden(f"User role {user.role} is not authorized to access this route")
    user = service.update_availability(user, body.availability)
    return create_success_response("Availability updated successfully", {"user": dump(UserOut, user)})


@router.get("/{user_id}")
def get_user(
    user_id: str,
    caller: Caller = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    user = service.get_user(user_id)
    # Doctors are public profiles; everyone else only to themselves and admins
    if user.role == "doctor" and not caller.is_admin and caller.id != user.id:
        return create_success_response("User retrieved successfully", {"user": dump(DoctorOut, user)})
    if not caller.is_admin and caller.id != user.id:
        raise Forbidden("Not authorized to access this user")
    return create_success_response("User retrieved successfully", {"user": dump(UserOut, user)})


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: AdminUserUpdate,
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    user = service.update_user(user_id, body.model_dump(exclude_unset=True), actor_email=caller.email)
    return create_success_response("User updated successfully", {"user": dump(UserOut, user)})


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(user_id)
    return create_success_response("User deactivated successfully")


@router.put("/{user_id}/activate")
def activate_user(
    user_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    user = service.set_active(user_id, True)
    return create_success_response("User activated successfully", {"user": dump(UserOut, user)})


@router.put("/{user_id}/deactivate")
def deactivate_user(
    user_id: str,
    caller: Caller = Depends(require_roles("admin")),
    service: UserService = Depends(get_user_service),
):
    user = service.set_active(user_id, False)
    return create_success_response("User deactivated successfully", {"user": dump(UserOut, user)})
