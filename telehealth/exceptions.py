import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.data = data or {}


class ValidationFailed(APIException):
    def __init__(self, detail: str = "Validation failed", data: Optional[Dict[str, Any]] = None):
        super().__init__(400, detail, data)


class NotFound(APIException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(404, detail)


class Unauthorized(APIException):
    def __init__(self, detail: str = "Not authorized to access this route"):
        super().__init__(401, detail)


class Forbidden(APIException):
    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(403, detail)


class Conflict(APIException):
    def __init__(self, detail: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(400, detail, data)


class SlotAlreadyBooked(Conflict):
    def __init__(self, detail: str = "Time slot is already booked"):
        super().__init__(detail)


class InvalidState(Conflict):
    pass


class DuplicateField(Conflict):
    pass


class InternalError(APIException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(500, detail)


def create_response(status: str, message: str, data: Any = None) -> dict:
    """Create the standard {status, message, data} envelope"""
    return {
        "status": status,
        "message": message,
        "data": jsonable_encoder(data) if data else {},
    }


def create_success_response(message: str, data: Any = None) -> dict:
    return create_response("success", message, data)


def create_error_response(message: str, data: Any = None) -> dict:
    return create_response("error", message, data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Not authorized to access this route"),
        )

    data = getattr(exc, "data", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), data),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in err.get("loc", ())[1:]) or None,
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=create_error_response("Validation failed", {"errors": errors}),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=400,
        content=create_error_response("Duplicate field value entered"),
    )


def unhandled_exception_handler(debug: bool):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error: {str(exc)}", exc_info=exc)
        message = f"Internal server error: {str(exc)}" if debug else "Internal server error"
        return JSONResponse(status_code=500, content=create_error_response(message))

    return handler
