"""
Per-request security gate.

Every request walks the same states in order: rate check, token
authentication, role authorization, dispatch. The first failing state ends
the request with its error; later states never run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, g, request

from storefront.api.deps import SECURITY_EXTENSION_KEY, client_ip, security
from storefront.core.extensions import get_cache
from storefront.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from storefront.infra.oauth.client import OAuth2Client, build_registry
from storefront.services._shared.errors import (
    AuthenticationRequiredError,
    InsufficientRoleError,
    RateLimitExceededError,
)
from storefront.services.authorization import AuthorizationPolicy, Decision, default_rules
from storefront.services.rate_limit import RateLimiter, RateLimitSettings
from storefront.services.tokens import TokenService, TokenSettings

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller derived from a validated access token."""

    subject_id: str
    roles: frozenset[str]
    token: str


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def enforce_security() -> None:
    """``before_request`` hook; raises service errors rendered by the error handlers."""
    if request.method == "OPTIONS":
        return

    g.principal = None
    components = security()
    limiter: RateLimiter = components["rate_limiter"]
    tokens: TokenService = components["tokens"]
    policy: AuthorizationPolicy = components["policy"]

    path = request.path
    ip = client_ip()
    if not limiter.check_and_consume(ip, limiter.select_policy(path)):
        raise RateLimitExceededError()

    token = bearer_token()
    principal: Principal | None = None
    if token is not None:
        claims = tokens.validate(token)
        principal = Principal(subject_id=claims.subject_id, roles=claims.roles, token=token)

    decision = policy.decide(path, request.method, principal.roles if principal else None)
    if decision is Decision.AUTHENTICATION_REQUIRED:
        raise AuthenticationRequiredError()
    if decision is Decision.INSUFFICIENT_ROLE:
        log.warning(
            "security.forbidden",
            extra={"path": path, "method": request.method, "subject_id": principal.subject_id},
        )
        raise InsufficientRoleError()

    g.principal = principal


def init_app(app: Flask) -> None:
    """
    Build the token service, rate limiter, policy and OAuth2 client once
    and install :func:`enforce_security` as a ``before_request`` hook.
    """
    cache = get_cache(app)
    tokens = TokenService(
        token_provider=JWTTokenProvider(),
        cache=cache,
        settings=TokenSettings.from_mapping(app.config),
    )
    limiter = RateLimiter(cache=cache, settings=RateLimitSettings.from_mapping(app.config))
    oauth2_client = OAuth2Client(
        build_registry(app.config.get("OAUTH2_PROVIDERS") or {}),
        timeout=float(app.config.get("OAUTH2_HTTP_TIMEOUT_SECONDS", 10)),
    )
    app.extensions[SECURITY_EXTENSION_KEY] = {
        "tokens": tokens,
        "rate_limiter": limiter,
        "policy": AuthorizationPolicy(default_rules()),
        "oauth2_client": oauth2_client,
    }
    app.before_request(enforce_security)
