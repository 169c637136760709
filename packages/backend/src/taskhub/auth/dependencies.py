"""FastAPI auth dependencies.

Used as Depends() in route handlers:
- get_identity_provider: the app-wide provider client (set up in lifespan)
- get_access_token: bearer header first, then the session cookie
- get_current_identity_optional: identity behind the token, or None
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from taskhub.auth.provider import AuthProviderError, IdentityProvider
from taskhub.config import settings
from taskhub.schemas.auth import Identity

logger = structlog.get_logger()


def access_token_cookie() -> str:
    return f"{settings.auth_cookie_prefix}-access-token"


def refresh_token_cookie() -> str:
    return f"{settings.auth_cookie_prefix}-refresh-token"


def get_identity_provider(request: Request) -> IdentityProvider:
    """The provider client created at startup and stored on app.state."""
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise RuntimeError("Identity provider not initialised (lifespan not run?)")
    return provider


def get_access_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    if authorization and authorization[:7].lower() == "bearer ":
        return authorization[7:]
    return request.cookies.get(access_token_cookie())


async def get_current_identity_optional(
    token: Optional[str] = Depends(get_access_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[Identity]:
    """Resolve the caller's identity (None if unauthenticated).

    A provider outage is treated as unauthenticated rather than an error.
    """
    if not token:
        return None
    try:
        return await provider.get_user(token)
    except AuthProviderError as e:
        logger.warning("auth.identity_lookup_failed", error=str(e))
        return None
