"""Error taxonomy and the FastAPI handlers that render it."""

import enum
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    INTERNAL = "internal"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BUSINESS_RULE: 422,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    kind = ErrorKind.INTERNAL
    code = "app_error"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    code = "validation_error"


class AuthenticationError(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    code = "unauthenticated"


class AuthorizationError(AppError):
    kind = ErrorKind.FORBIDDEN
    code = "forbidden"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    code = "conflict"


class BusinessRuleError(AppError):
    """Well-formed input that policy does not allow."""
    kind = ErrorKind.BUSINESS_RULE
    code = "business_rule"


class QuotaExceededError(BusinessRuleError):
    code = "quota_exceeded"


class MediaTypeMismatchError(BusinessRuleError):
    code = "media_type_mismatch"


def _error_payload(kind: ErrorKind, code: str, message: str) -> dict:
    return {
        "error": {"code": code, "kind": kind.value, "message": message},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    status = exc.status_code
    level = logging.ERROR if status >= 500 else logging.INFO
    logger.log(level, "%s %s -> %s (%s): %s", request.method, request.url.path, status, exc.code, exc.message)
    return JSONResponse(status_code=status, content=_error_payload(exc.kind, exc.code, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    message = "; ".join(parts) or "Invalid request"
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.VALIDATION],
        content=_error_payload(ErrorKind.VALIDATION, "validation_error", message),
    )


async def http_error_handler(request: Request, exc: HTTPException):
    kind = {
        401: ErrorKind.UNAUTHENTICATED,
        403: ErrorKind.FORBIDDEN,
        404: ErrorKind.NOT_FOUND,
        409: ErrorKind.CONFLICT,
    }.get(exc.status_code, ErrorKind.VALIDATION if exc.status_code < 500 else ErrorKind.INTERNAL)
    message = str(exc.detail) if exc.detail else "HTTP error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(kind, "http_error", message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.INTERNAL],
        content=_error_payload(ErrorKind.INTERNAL, "internal_error", "Unexpected error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
