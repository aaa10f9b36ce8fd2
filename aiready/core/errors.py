# aiready/core/errors.py
from __future__ import annotations

import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger("aiready.errors")


class ErrorType(str, enum.Enum):
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    AUTHORIZATION = "authorization_error"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_SERVICE = "external_service_error"
    DATABASE = "database_error"
    AI_MODEL = "ai_model_error"
    BUSINESS_LOGIC = "business_logic_error"
    RATE_LIMIT = "rate_limit_error"
    CONFIGURATION = "configuration_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown_error"


# -----------------------------
# Exception hierarchy
# -----------------------------
class AppError(Exception):
    """
    Base application error.
    Operational errors are expected failures (bad input, missing rows, provider down);
    non-operational ones are bugs and get a generic message on the wire.
    """

    def __init__(
        self,
        message: str,
        type: ErrorType = ErrorType.UNKNOWN,
        status_code: int = 500,
        is_operational: bool = True,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.type = ErrorType(type)
        self.status_code = int(status_code)
        self.is_operational = is_operational
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.type.value,
            "message": self.message,
            "status": self.status_code,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, ErrorType.VALIDATION, 400, True, details)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication required", details: Optional[Any] = None):
        super().__init__(message, ErrorType.AUTHENTICATION, 401, True, details)


class AuthorizationError(AppError):
    def __init__(self, message: str = "Insufficient permissions", details: Optional[Any] = None):
        super().__init__(message, ErrorType.AUTHORIZATION, 403, True, details)


class ResourceNotFoundError(AppError):
    def __init__(self, resource: str, id: Any, details: Optional[Any] = None):
        super().__init__(
            f"{resource} with ID {id} not found",
            ErrorType.RESOURCE_NOT_FOUND,
            404,
            True,
            details,
        )
        self.resource = resource
        self.resource_id = id


class ExternalServiceError(AppError):
    def __init__(self, service: str, message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(
            message or f"Error in external service: {service}",
            ErrorType.EXTERNAL_SERVICE,
            502,
            True,
            details,
        )
        self.service = service


class DatabaseError(AppError):
    def __init__(self, operation: str, message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(
            message or f"Database error during {operation}",
            ErrorType.DATABASE,
            500,
            True,
            details,
        )
        self.operation = operation


class AIModelError(AppError):
    def __init__(self, model: str, message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(
            message or f"AI model error: {model}",
            ErrorType.AI_MODEL,
            500,
            True,
            details,
        )
        self.model = model


class BusinessLogicError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, ErrorType.BUSINESS_LOGIC, 400, True, details)


class RateLimitError(AppError):
    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Any] = None):
        super().__init__(message, ErrorType.RATE_LIMIT, 429, True, details)


class ConfigurationError(AppError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, ErrorType.CONFIGURATION, 500, True, details)


class ServiceUnavailableError(AppError):
    def __init__(self, service: str, message: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(
            message or f"Service unavailable: {service}",
            ErrorType.SERVICE_UNAVAILABLE,
            503,
            True,
            details,
        )
        self.service = service


def normalize_error(exc: BaseException) -> AppError:
    """Map any exception onto the AppError hierarchy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, SQLAlchemyError):
        # the statement text stays in the logs
        return DatabaseError("query", details={"error": exc.__class__.__name__})
    if isinstance(exc, httpx.HTTPStatusError):
        return ExternalServiceError(
            str(exc.request.url.host),
            details={"status_code": exc.response.status_code},
        )
    if isinstance(exc, httpx.HTTPError):
        return ExternalServiceError("http", details={"error": str(exc)})
    return AppError(
        str(exc) or exc.__class__.__name__,
        ErrorType.UNKNOWN,
        500,
        is_operational=False,
    )


# -----------------------------
# Trace / request id helpers
# -----------------------------
def _ensure_trace_id(request: Request) -> str:
    """
    Return a stable trace_id for this request.
    Prefer a value already set on request.state, then common headers,
    and finally generate a new one (and store it on request.state).
    """
    for attr in ("trace_id", "request_id"):
        val = getattr(getattr(request, "state", object()), attr, None)
        if val:
            return str(val)

    for h in ("x-request-id", "x-correlation-id", "x-trace-id"):
        v = request.headers.get(h)
        if v:
            request.state.trace_id = v
            return v

    new_id = uuid.uuid4().hex
    request.state.trace_id = new_id
    return new_id


def _payload(
    *,
    message: str,
    typ: str,
    status: int,
    trace_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "ok": False,
        "error": {
            "type": typ,
            "message": message,
            "status": status,
            "trace_id": trace_id,
        },
    }
    if details is not None:
        body["error"]["details"] = details
    return body


def _app_error_response(request: Request, exc: AppError) -> JSONResponse:
    trace_id = _ensure_trace_id(request)
    status_code = exc.status_code

    if not exc.is_operational:
        log.error(
            "AppError(non-operational) %s %s -> %s | trace_id=%s | %s",
            request.method,
            request.url.path,
            status_code,
            trace_id,
            exc.message,
        )
        message, details = "Internal server error.", None
    else:
        level = logging.ERROR if status_code >= 500 else logging.WARNING
        log.log(
            level,
            "AppError %s %s -> %s | trace_id=%s | type=%s | %s",
            request.method,
            request.url.path,
            status_code,
            trace_id,
            exc.type.value,
            exc.message,
        )
        message, details = exc.message, exc.details

    return JSONResponse(
        status_code=status_code,
        headers={"X-Request-ID": trace_id},
        content=_payload(
            message=message,
            typ=exc.type.value,
            status=status_code,
            trace_id=trace_id,
            details=details,
        ),
    )


# -----------------------------
# Install / register handlers
# -----------------------------
def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers consistent JSON error handlers.
    Also ensures X-Request-ID header is present on error responses.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _app_error_response(request, exc)

    @app.exception_handler(HTTPException)
    async def http_exc_handler(request: Request, exc: HTTPException):
        trace_id = _ensure_trace_id(request)
        status_code = int(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        details = exc.detail if isinstance(exc.detail, dict) else None

        headers = dict(exc.headers or {})
        headers["X-Request-ID"] = trace_id

        level = logging.ERROR if status_code >= 500 else logging.WARNING
        log.log(
            level,
            "HTTPException %s %s -> %s | trace_id=%s | detail=%r",
            request.method,
            request.url.path,
            status_code,
            trace_id,
            exc.detail,
        )

        return JSONResponse(
            status_code=status_code,
            headers=headers,
            content=_payload(
                message=message,
                typ="http_error",
                status=status_code,
                trace_id=trace_id,
                details=details,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        trace_id = _ensure_trace_id(request)
        errors = exc.errors()
        log.warning(
            "ValidationError %s %s -> 422 | trace_id=%s | errors=%s",
            request.method,
            request.url.path,
            trace_id,
            errors,
        )
        return JSONResponse(
            status_code=422,
            headers={"X-Request-ID": trace_id},
            content=_payload(
                message="Validation failed.",
                typ=ErrorType.VALIDATION.value,
                status=422,
                trace_id=trace_id,
                details=[
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in errors
                ],
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        log.exception(
            "Unhandled exception %s %s | trace_id=%s",
            request.method,
            request.url.path,
            _ensure_trace_id(request),
        )
        # SQLAlchemy and httpx failures keep their typed envelope
        return _app_error_response(request, normalize_error(exc))
