import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .application.ports.rate_limiter import RateLimiter
from .exceptions import create_error_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client request budget over a sliding window; over-budget requests
    get a 429 envelope with Retry-After."""

    def __init__(self, app: ASGIApp, limiter: RateLimiter, max_requests: int = 100, window_seconds: int = 900):
        super().__init__(app)
        self.limiter = limiter
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"

        if not self.limiter.allow(client_ip, self.max_requests, self.window_seconds):
            retry_after = self.limiter.retry_after(client_ip, self.window_seconds)
            logger.warning(f"Rate limit exceeded for IP: {client_ip} on {request.method} {request.url.path}")
            return JSONResponse(
                status_code=429,
                content=create_error_response("Too many requests from this IP, please try again later."),
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)


class SecurityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, api_prefix: str = "/api"):
        super().__init__(app)
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Patient records must not sit in shared caches
        if request.url.path.startswith(self.api_prefix):
            response.headers["Cache-Control"] = "no-store"

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id (client-supplied or generated) and logs
    method, path, status and duration under it."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.time()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"[{request_id}] {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(f"[{request_id}] {response.status_code} in {duration:.3f}s")
        response.headers[REQUEST_ID_HEADER] = request_id

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last line of defence for errors raised outside the route handlers."""

    def __init__(self, app: ASGIApp, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "-")
            logger.error(f"[{request_id}] Unhandled error on {request.method} {request.url.path}: {str(e)}", exc_info=True)
            message = f"Internal server error: {str(e)}" if self.debug else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response(message))
