"""Every failed request answers with the same JSON error document.

Shape::

    {"error": "Unauthorized", "message": "...", "status": 401,
     "timestamp": "...", "path": "/api/...", "code": "token_expired",
     "request_id": "...", "details": {...}}

``details`` is present only when there is something structured to report,
e.g. ``{"field_errors": {...}}`` for validation failures.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from storefront.core.logger import ensure_request_id
from storefront.services._shared import errors as svc

log = logging.getLogger(__name__)

# ``error`` labels the frontend switches on; other statuses use the HTTP phrase.
_ERROR_LABELS: dict[int, str] = {
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Access Denied",
    HTTPStatus.TOO_MANY_REQUESTS: "Rate Limit Exceeded",
    HTTPStatus.BAD_REQUEST: "Bad Request",
}

# Looked up along the MRO, so subclasses inherit their parent's status.
_SERVICE_STATUS: dict[type[svc.ServiceError], int] = {
    svc.RateLimitExceededError: HTTPStatus.TOO_MANY_REQUESTS,
    svc.AuthenticationError: HTTPStatus.UNAUTHORIZED,
    svc.InsufficientRoleError: HTTPStatus.FORBIDDEN,
    svc.NotFoundError: HTTPStatus.NOT_FOUND,
    svc.UnknownProviderError: HTTPStatus.NOT_FOUND,
    svc.ConflictError: HTTPStatus.CONFLICT,
    svc.OAuth2ExchangeError: HTTPStatus.BAD_GATEWAY,
    svc.ServiceError: HTTPStatus.BAD_REQUEST,
}


def _code_for_status(status: int) -> str:
    """``404`` -> ``not_found``; unknown statuses collapse to ``error``."""
    if status == HTTPStatus.REQUEST_ENTITY_TOO_LARGE:
        return "payload_too_large"
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return "error"
    return phrase.lower().replace("-", "_").replace(" ", "_")


def error_body(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the JSON error document for the current request."""
    body: dict[str, Any] = {
        "error": _ERROR_LABELS.get(status) or HTTPStatus(status).phrase,
        "message": message,
        "status": int(status),
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "path": request.path if has_request_context() else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


class APIError(Exception):
    """An error already resolved to an HTTP status and a stable code."""

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_REQUEST,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = dict(details or {})

    def to_body(self) -> dict[str, Any]:
        return error_body(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details,
        )


def status_for(exc: svc.ServiceError) -> int:
    """HTTP status a service error is surfaced with."""
    for klass in type(exc).__mro__:
        if klass in _SERVICE_STATUS:
            return int(_SERVICE_STATUS[klass])
    return int(HTTPStatus.BAD_REQUEST)


def from_service_error(exc: svc.ServiceError) -> APIError:
    """
    Translate a framework-agnostic service error.

    :param exc: Error raised by a service or security component.
    :returns: API error carrying status, code and, for validation failures,
        ``{"field_errors": ...}`` details.
    :rtype: APIError
    """
    details = None
    if isinstance(exc, svc.ValidationFailedError):
        details = {"field_errors": exc.field_errors}
    return APIError(exc.message, status_for(exc), exc.code, details)


def flatten_messages(messages: Any, prefix: str = "") -> dict[str, str]:
    """
    Collapse marshmallow's nested messages to ``{"field.sub": "msg; msg"}``.

    >>> flatten_messages({"roles": {0: ["Unknown role"]}})
    {'roles.0': 'Unknown role'}
    """
    if isinstance(messages, list):
        return {prefix or "_schema": "; ".join(map(str, messages))}
    if not isinstance(messages, dict):
        return {prefix or "_schema": str(messages)}
    flat: dict[str, str] = {}
    for key, value in messages.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_messages(value, name))
        elif isinstance(value, list):
            flat[name] = "; ".join(map(str, value))
        else:
            flat[name] = str(value)
    return flat


def _respond(err: APIError, *, exc_info: bool = False) -> tuple[Response, int]:
    body = err.to_body()
    if err.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        log.error("request.failed code=%s", err.code, extra={"reason": err.message}, exc_info=exc_info)
    else:
        log.warning("request.rejected code=%s", err.code, extra={"reason": err.message})
    return jsonify(body), err.status_code


def init_app(app: Flask) -> None:
    """Register JSON handlers for every error a request can end with."""

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _respond(err)

    @app.errorhandler(svc.ServiceError)
    def handle_service_error(err: svc.ServiceError):
        return _respond(from_service_error(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND and has_request_context():
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return _respond(APIError(message, status, _code_for_status(status)))

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        details = {"field_errors": flatten_messages(err.messages)}
        return _respond(APIError("Validation failed", code=svc.ValidationFailedError.code, details=details))

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Concurrent registrations can both pass the service-level email check.
        if svc.violates(err, "uq_users_email"):
            message = "Email is already taken"
        else:
            message = "Resource conflict"
        return _respond(APIError(message, HTTPStatus.CONFLICT, "conflict"))

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        unavailable = APIError(
            "Service temporarily unavailable", HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable"
        )
        return _respond(unavailable, exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Internal details stay in the log.
        log.exception("request.unhandled")
        return _respond(
            APIError(
                "An unexpected error occurred",
                HTTPStatus.INTERNAL_SERVER_ERROR,
                "internal_server_error",
            )
        )
