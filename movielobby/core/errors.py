"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module fournit une gestion centralisée des erreurs avec des enveloppes standardisées, des codes
d'erreur cohérents et l'identifiant de requête comme `trace_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from movielobby.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNAUTHORIZED,
)

log = logging.getLogger(__name__)


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: Any = None


class APIError(HTTPException):
    """Custom API error with standard envelope."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
    ) -> None:
        """Initialize an API error with standardized envelope."""
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


class StoreError(Exception):
    """Échec du dépôt sous-jacent (connexion, timeout, données corrompues)."""


class ErrorCodes:
    """Standard error codes for the API."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES = {
    HTTP_BAD_REQUEST: ErrorCodes.BAD_REQUEST,
    HTTP_UNAUTHORIZED: ErrorCodes.UNAUTHORIZED,
    HTTP_FORBIDDEN: ErrorCodes.FORBIDDEN,
    HTTP_NOT_FOUND: ErrorCodes.NOT_FOUND,
    405: "METHOD_NOT_ALLOWED",
    HTTP_CONFLICT: ErrorCodes.CONFLICT,
    HTTP_INTERNAL_SERVER_ERROR: ErrorCodes.INTERNAL_ERROR,
}


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: Any = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": jsonable_encoder(envelope.details)} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Return the request id set by the context middleware, if any."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions with standard envelope."""
    trace_id = extract_trace_id(request)
    log.info(
        "API error occurred",
        extra={"code": exc.code, "status_code": exc.status_code, "trace_id": trace_id},
    )
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        trace_id=trace_id,
        details=exc.details,
    )


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI/Starlette HTTPException (404 route, 405...) with standard envelope."""
    return create_error_response(
        status_code=exc.status_code,
        code=_STATUS_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        trace_id=extract_trace_id(request),
    )


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query validation failures as 400 with per-field details."""
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "error": err.get("msg")}
        for err in exc.errors()
    ]
    fields = ", ".join(d["field"] for d in details if d["field"])
    return create_error_response(
        status_code=HTTP_BAD_REQUEST,
        code=ErrorCodes.BAD_REQUEST,
        message=f"Bad Request - Invalid parameters: {fields}" if fields else "Bad Request",
        trace_id=extract_trace_id(request),
        details=details,
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    trace_id = extract_trace_id(request)
    log.error(
        "Unexpected error occurred",
        extra={"trace_id": trace_id, "exception_type": type(exc).__name__},
        exc_info=True,
    )
    return create_error_response(
        status_code=HTTP_INTERNAL_SERVER_ERROR,
        code=ErrorCodes.INTERNAL_ERROR,
        message="An unexpected error occurred",
        trace_id=trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Branche les gestionnaires d'erreurs sur l'application."""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)


# Convenience functions for common errors
def bad_request(message: str, details: Any = None) -> APIError:
    """Create a 400 Bad Request error."""
    return APIError(HTTP_BAD_REQUEST, ErrorCodes.BAD_REQUEST, message, details)


def unauthorized(message: str) -> APIError:
    """Create a 401 Unauthorized error."""
    return APIError(HTTP_UNAUTHORIZED, ErrorCodes.UNAUTHORIZED, message)


def forbidden(message: str) -> APIError:
    """Create a 403 Forbidden error."""
    return APIError(HTTP_FORBIDDEN, ErrorCodes.FORBIDDEN, message)


def not_found(message: str) -> APIError:
    """Create a 404 Not Found error."""
    return APIError(HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND, message)


def conflict(message: str) -> APIError:
    """Create a 409 Conflict error."""
    return APIError(HTTP_CONFLICT, ErrorCodes.CONFLICT, message)


def internal_error(message: str) -> APIError:
    """Create a 500 Internal Server Error."""
    return APIError(HTTP_INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_ERROR, message)
