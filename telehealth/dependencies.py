"""Request-scoped dependencies: authentication, role checks, service wiring."""
import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .application.query import Caller, QueryOptions
from .application.services.appointments_service import AppointmentsService
from .application.services.auth_service import AuthService
from .application.services.consultation_service import ConsultationService
from .application.services.crud_service import CrudService
from .application.services.hospital_service import HospitalService
from .application.services.notification_service import NotificationService
from .application.services.payment_service import PaymentService
from .application.services.prescription_service import PrescriptionService
from .application.services.user_service import UserService
from .config import Settings
from .database import get_session
from .exceptions import Forbidden, Unauthorized
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.sqlalchemy.policies import (
    CONSULTATION_POLICY,
    HOSPITAL_POLICY,
    NOTIFICATION_POLICY,
    PAYMENT_POLICY,
    PRESCRIPTION_POLICY,
)
from .infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from .infrastructure.persistence.sqlalchemy.repositories.crud_repository_sql import SqlCrudRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .models import User
from .utils import decode_jwt_token

logger = logging.getLogger(__name__)

# Auth scheme
oauth2_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials], settings: Settings) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    # Fallback to cookie
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> User:
    token = _token_from_request(request, credentials, settings)
    if not token:
        raise Unauthorized("Not authorized to access this route")

    payload = decode_jwt_token(token, settings)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise Unauthorized("Not authorized to access this route")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing user ID")
        raise Unauthorized("Not authorized to access this route")

    user = session.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return user


def get_caller(user: User = Depends(get_current_user)) -> Caller:
    return Caller(id=user.id, role=user.role, email=user.email, name=user.name)


def require_roles(*roles: str) -> Callable[..., Caller]:
    def checker(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in roles:
            raise Forbidden(f"User role {caller.role} is not authorized to access this route")
        return caller

    return checker


def query_options(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort: Optional[str] = None,
    search: Optional[str] = None,
    settings: Settings = Depends(get_app_settings),
) -> QueryOptions:
    return QueryOptions.build(
        page=page,
        limit=limit,
        sort=sort,
        search=search,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )


# ------------------------
# Service factories
# ------------------------
def get_notification_service(session: Session = Depends(get_session)) -> NotificationService:
    return NotificationService(SqlCrudRepository(session, NOTIFICATION_POLICY), SqlUserRepository(session))


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(SqlUserRepository(session), StdAuditLogger())


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(SqlUserRepository(session), StdAuditLogger())


def get_appointments_service(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    notifications: NotificationService = Depends(get_notification_service),
) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        user_repo=SqlUserRepository(session),
        notifier=notifications,
        slot_minutes=settings.SLOT_MINUTES,
        default_day_start=settings.DEFAULT_DAY_START,
        default_day_end=settings.DEFAULT_DAY_END,
    )


def get_consultation_service(
    session: Session = Depends(get_session),
    appointments: AppointmentsService = Depends(get_appointments_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> ConsultationService:
    return ConsultationService(SqlCrudRepository(session, CONSULTATION_POLICY), appointments, notifications)


def get_prescription_service(
    session: Session = Depends(get_session),
    appointments: AppointmentsService = Depends(get_appointments_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> PrescriptionService:
    return PrescriptionService(SqlCrudRepository(session, PRESCRIPTION_POLICY), SqlUserRepository(session), appointments, notifications)


def get_payment_service(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
    appointments: AppointmentsService = Depends(get_appointments_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> PaymentService:
    return PaymentService(
        repo=SqlCrudRepository(session, PAYMENT_POLICY),
        user_repo=SqlUserRepository(session),
        appointments=appointments,
        currency=settings.DEFAULT_CURRENCY,
        notifier=notifications,
    )


def get_hospital_service(session: Session = Depends(get_session)) -> HospitalService:
    return HospitalService(CrudService(SqlCrudRepository(session, HOSPITAL_POLICY)))
