"""OAuth2 authorization-code login endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, redirect, request

from storefront.api.deps import cache, get_oauth2_client, get_token_service, service_context, timing
from storefront.services.oauth import OAuth2ProvisioningService

bp = Blueprint("oauth2", __name__)


def _service() -> OAuth2ProvisioningService:
    return OAuth2ProvisioningService(
        tokens=get_token_service(),
        cache=cache(),
        client=get_oauth2_client(),
        success_redirect_url=current_app.config["OAUTH2_SUCCESS_REDIRECT_URL"],
        ctx=service_context(),
    )


def _redirect_uri(provider: str) -> str:
    return current_app.config["OAUTH2_REDIRECT_URI_TEMPLATE"].format(provider=provider.lower())


@bp.get("/oauth2/authorization/<provider>")
@timing
def authorize(provider: str):
    """Redirect the browser to the provider's consent page."""

    url = _service().begin(provider, redirect_uri=_redirect_uri(provider))
    return redirect(url, code=302)


@bp.get("/login/oauth2/code/<provider>")
@timing
def callback(provider: str):
    """Exchange the code, provision the user and hand tokens to the frontend."""

    url = _service().callback(
        provider,
        code=request.args.get("code", ""),
        state=request.args.get("state", ""),
        redirect_uri=_redirect_uri(provider),
    )
    return redirect(url, code=302)
