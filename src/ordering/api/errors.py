"""Maps ordering failures to HTTP responses.

Every error body has the same shape::

    {"error": {"kind": "conflict", "message": "...", "details": {...}}}

``kind`` is stable and machine readable; ``message`` is the first human
readable reason; ``details`` carries the field-keyed messages when there are
any.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from ordering.domain import logger
from ordering.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyError,
    InsufficientStock,
    PersistenceVerificationFailed,
)

ERROR_KINDS = {
    ValidationError: (400, "validation_error"),
    ConflictError: (409, "conflict"),
    InsufficientStock: (409, "insufficient_stock"),
    ObjectNotFoundError: (404, "not_found"),
    AuthenticationError: (401, "authentication_error"),
    AuthorizationError: (403, "authorization_error"),
    DependencyError: (502, "dependency_error"),
    PersistenceVerificationFailed: (500, "persistence_verification_failed"),
}


def _details(exc) -> dict:
    messages = getattr(exc, "messages", None)
    return messages if isinstance(messages, dict) else {}


def _message(exc) -> str:
    details = _details(exc)
    for value in details.values():
        if isinstance(value, (list, tuple)) and value:
            return str(value[0])
        if value:
            return str(value)

    message = getattr(exc, "message", None) or getattr(exc, "messages", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


def error_response(status_code: int, kind: str, message: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": kind, "message": message, "details": details or {}}},
    )


def _handler_for(status_code: int, kind: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            kind=kind,
            error=_message(exc),
        )
        return error_response(status_code, kind, _message(exc), _details(exc))

    return handler


_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


def _request_error_details(exc: RequestValidationError) -> dict:
    """Field-keyed messages from FastAPI's request parsing errors."""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        field = ".".join(part for part in loc if part not in _REQUEST_PARTS) or ".".join(loc) or "request"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return details


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = _request_error_details(exc)
    field, messages = next(iter(details.items()), ("request", ["Invalid request"]))
    message = f"{field}: {messages[0]}"
    logger.info(
        "Request failed",
        path=request.url.path,
        method=request.method,
        kind="validation_error",
        error=message,
    )
    return error_response(400, "validation_error", message, details)


def register_error_handlers(app: FastAPI) -> None:
    """Install protean's default handlers, then the ordering-specific ones."""
    register_exception_handlers(app)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    for exc_class, (status_code, kind) in ERROR_KINDS.items():
        app.add_exception_handler(exc_class, _handler_for(status_code, kind))
