"""Auth API — sign-in callback and current user.

- GET /auth/callback → exchange the provider's code, provision the
  profile on first login, redirect into the app (or back to /login)
- GET /api/auth/me → current user profile + permissions
"""

from typing import Optional
from urllib.parse import quote, urlencode, urlsplit

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import (
    access_token_cookie,
    get_current_identity_optional,
    get_identity_provider,
    refresh_token_cookie,
)
from taskhub.auth.permissions import user_permissions
from taskhub.auth.provider import IdentityProvider
from taskhub.config import settings
from taskhub.db.engine import get_db
from taskhub.schemas.auth import (
    AuthSession,
    CurrentUserResponse,
    Identity,
    ProfileRead,
)
from taskhub.services.auth_service import AuthBootstrapService, AuthenticationFailed
from taskhub.services.profile_service import ProfileService

logger = structlog.get_logger()

# Mounted under /api
router = APIRouter(prefix="/auth")

# Mounted at the site root: the provider redirects browsers here
callback_router = APIRouter()

AUTH_ERROR_MESSAGE = "Could not authenticate"


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_auth_service(
    provider: IdentityProvider = Depends(get_identity_provider),
    profiles: ProfileService = Depends(get_profile_service),
) -> AuthBootstrapService:
    return AuthBootstrapService(provider, profiles)


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def safe_next_path(next_path: Optional[str]) -> str:
    """Only same-origin relative paths are followed after sign-in.

    '/projects/42' passes through unchanged; absolute URLs,
    protocol-relative '//host' paths and backslash tricks fall back to
    the default landing page.
    """
    if not next_path:
        return settings.default_redirect_path
    parts = urlsplit(next_path)
    if (
        not next_path.startswith("/")
        or next_path.startswith("//")
        or "\\" in next_path
        or parts.scheme
        or parts.netloc
    ):
        logger.warning("auth.unsafe_next_rejected", next=next_path)
        return settings.default_redirect_path
    return next_path


def _set_session_cookies(
    response: RedirectResponse, session: AuthSession, secure: bool
) -> None:
    response.set_cookie(
        access_token_cookie(),
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    if session.refresh_token:
        response.set_cookie(
            refresh_token_cookie(),
            session.refresh_token,
            httponly=True,
            secure=secure,
            samesite="lax",
        )
    response.delete_cookie(settings.auth_code_verifier_cookie)


# ─── Callback ───────────────────────────────────────────


@callback_router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    next_path: Optional[str] = Query(None, alias="next"),
    svc: AuthBootstrapService = Depends(get_auth_service),
):
    """Complete an OAuth/magic-link sign-in started on the login page."""
    origin = request_origin(request)
    code_verifier = request.cookies.get(settings.auth_code_verifier_cookie)

    try:
        result = await svc.sign_in(code, code_verifier)
    except AuthenticationFailed as e:
        logger.info("auth.callback_failed", reason=str(e))
        query = urlencode({"error": AUTH_ERROR_MESSAGE}, quote_via=quote)
        return RedirectResponse(f"{origin}{settings.login_path}?{query}")

    response = RedirectResponse(f"{origin}{safe_next_path(next_path)}")
    _set_session_cookies(response, result.session, secure=request.url.scheme == "https")
    return response


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    identity: Optional[Identity] = Depends(get_current_identity_optional),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Get the signed-in user's profile and permissions (401 if none)."""
    user = await profiles.find_profile(identity.id) if identity else None
    if user is None:
        return JSONResponse(
            status_code=401,
            content=CurrentUserResponse().model_dump(),
        )

    return CurrentUserResponse(
        user=ProfileRead.model_validate(user),
        permissions=user_permissions(user, settings.admin_emails),
    )
