"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from storefront.core.extensions import get_cache
from storefront.core.logger import ensure_request_id
from storefront.services._shared.base import ServiceContext
from storefront.services._shared.errors import AuthenticationRequiredError
from storefront.services.rate_limit import RateLimiter, resolve_client_ip
from storefront.services.tokens import TokenService

F = TypeVar("F", bound=Callable[..., Any])

SECURITY_EXTENSION_KEY = "security"


def security() -> dict[str, Any]:
    """Return the security components registered by :mod:`storefront.api.pipeline`."""
    components = current_app.extensions.get(SECURITY_EXTENSION_KEY)
    if components is None:
        raise RuntimeError("Security pipeline is not initialized.")
    return cast(dict[str, Any], components)


def get_token_service() -> TokenService:
    return cast(TokenService, security()["tokens"])


def get_rate_limiter() -> RateLimiter:
    return cast(RateLimiter, security()["rate_limiter"])


def get_oauth2_client() -> Any:
    return security().get("oauth2_client")


def client_ip() -> str:
    """Resolve the caller address from proxy headers or the socket peer."""
    return resolve_client_ip(request.headers, request.remote_addr)


def current_principal():
    """Return the authenticated principal for the current request, or ``None``."""
    return getattr(g, "principal", None)


def require_principal():
    """Return the current principal or raise a 401."""
    principal = current_principal()
    if principal is None:
        raise AuthenticationRequiredError()
    return principal


def service_context() -> ServiceContext:
    """Build the request-scoped context handed to application services."""
    principal = current_principal()
    return ServiceContext(
        actor_id=principal.subject_id if principal is not None else None,
        request_id=ensure_request_id(),
        client_ip=client_ip(),
    )


def cache():
    return get_cache()


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
