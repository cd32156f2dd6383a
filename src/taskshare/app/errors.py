"""Domain error types and the handlers rendering them as JSON envelopes.

Every failure leaves the API as ``{"code", "message", "details"}`` with the
correlation id merged into ``details`` and echoed in ``X-Request-ID``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, ClassVar, Mapping

from fastapi import FastAPI, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, bind_request_id, reset_context
from .schemas.system import ErrorResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error."


class ApplicationError(Exception):
    """Base class for errors the API reports to clients verbatim."""

    default_message: ClassVar[str] = "Request failed."
    default_code: ClassVar[str] = "application_error"
    default_status: ClassVar[int] = status.HTTP_400_BAD_REQUEST
    default_headers: ClassVar[Mapping[str, str] | None] = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.details = details
        merged = {**(self.default_headers or {}), **(headers or {})}
        self.headers = merged or None


class ValidationError(ApplicationError):
    """Malformed input or a rule the request breaks."""

    default_message = "Validation failed."
    default_code = "validation_error"


class UnauthenticatedError(ApplicationError):
    default_message = "Not authorized."
    default_code = "unauthorized"
    default_status = status.HTTP_401_UNAUTHORIZED
    default_headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(ApplicationError):
    """Authenticated, but not entitled to the requested action."""

    default_message = "Not authorized"
    default_code = "forbidden"
    default_status = status.HTTP_403_FORBIDDEN


class NotFoundError(ApplicationError):
    """Missing resources, and resources hidden from the caller."""

    default_message = "Resource not found."
    default_code = "not_found"
    default_status = status.HTTP_404_NOT_FOUND


class ServerError(ApplicationError):
    default_message = INTERNAL_ERROR_MESSAGE
    default_code = "server_error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


_HTTP_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "validation_error",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _with_request_id(request_id: str | None, details: Any | None) -> Any | None:
    if not request_id:
        return details
    if details is None:
        return {"request_id": request_id}
    if isinstance(details, dict):
        return {"request_id": request_id, **details} if "request_id" not in details else details
    return {"request_id": request_id, "detail": details}


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope for ``request``."""

    request_id = _request_id(request)
    envelope = ErrorResponse(code=code, message=message, details=_with_request_id(request_id, details))
    response = JSONResponse(status_code=status_code, content=jsonable_encoder(envelope))
    if headers:
        response.headers.update(headers)
    if request_id and REQUEST_ID_HEADER not in response.headers:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


def _summarise_validation_errors(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Request validation failed."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


async def handle_application_error(request: Request, exc: ApplicationError) -> JSONResponse:
    log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
    log("Request rejected", extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path})
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        headers=exc.headers,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.warning("Request validation failed", extra={"errors": errors, "path": request.url.path})
    return error_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="validation_error",
        message=_summarise_validation_errors(errors),
        details={"errors": errors},
    )


async def handle_store_error(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error("Document store operation failed", exc_info=exc, extra={"path": request.url.path})
    return error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="server_error",
        message=INTERNAL_ERROR_MESSAGE,
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, str):
        message, details = exc.detail, None
    else:
        message = HTTPStatus(exc.status_code).phrase
        details = {"errors": exc.detail} if isinstance(exc.detail, list) else exc.detail
    return error_response(
        request,
        status_code=exc.status_code,
        code=_HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
        message=message,
        details=details,
        headers=exc.headers,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    # Runs in the outermost middleware, after the correlation context was reset.
    request_id = _request_id(request)
    token = bind_request_id(request_id) if request_id else None
    try:
        logger.exception("Unhandled application error", extra={"path": request.url.path})
    finally:
        if token is not None:
            reset_context(token)
    return error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="server_error",
        message=INTERNAL_ERROR_MESSAGE,
    )


_HANDLERS = (
    (ApplicationError, handle_application_error),
    (RequestValidationError, handle_request_validation_error),
    (PyMongoError, handle_store_error),
    (StarletteHTTPException, handle_http_exception),
    (Exception, handle_unexpected_error),
)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every error handler to ``app``."""

    for exc_class, handler in _HANDLERS:
        app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]


__all__ = [
    "ApplicationError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "UnauthenticatedError",
    "ValidationError",
    "error_response",
    "register_exception_handlers",
]
