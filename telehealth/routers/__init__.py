# Routers package
from . import auth_router
from . import users_router
from . import appointments_router
from . import consultations_router
from . import prescriptions_router
from . import payments_router
from . import notifications_router
from . import hospitals_router

__all__ = [
    "auth_router",
    "users_router",
    "appointments_router",
    "consultations_router",
    "prescriptions_router",
    "payments_router",
    "notifications_router",
    "hospitals_router",
]
