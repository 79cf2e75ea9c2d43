import logging

from fastapi import APIRouter, Depends, Request, Response

from ..application.services.auth_service import AuthService
from ..config import Settings
from ..dependencies import get_app_settings, get_auth_service, get_current_user
from ..exceptions import create_success_response
from ..models import User
from ..schemas.auth.auth import ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest
from ..schemas.common.common import dump
from ..schemas.users.user import UserOut
from ..utils import create_jwt_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)


def _issue_token(response: Response, user: User, settings: Settings) -> str:
    access_token = create_jwt_token(user.id, settings)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return access_token


@router.post("/register", status_code=201)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    service: AuthService = Depends(get_auth_service),
):
    user = service.register(body.model_dump(exclude_unset=True), ip_address=_client_ip(request))
    token = _issue_token(response, user, settings)
    return create_success_response("User registered successfully", {"user": dump(UserOut, user), "token": token})


@router.post("/login")
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    service: AuthService = Depends(get_auth_service),
):
    user = service.login(body.email, body.password, ip_address=_client_ip(request))
    token = _issue_token(response, user, settings)
    return create_success_response("Login successful", {"user": dump(UserOut, user), "token": token})


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return create_success_response("User retrieved successfully", {"user": dump(UserOut, user)})


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(user, body.model_dump(exclude_unset=True))
    return create_success_response("Profile updated successfully", {"user": dump(UserOut, user)})


@router.put("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(user, body.current_password, body.new_password)
    return create_success_response("Password changed successfully")


@router.post("/logout")
def logout(
    response: Response,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    logger.info(f"User {user.id} logged out")
    return create_success_response("Logged out successfully")
