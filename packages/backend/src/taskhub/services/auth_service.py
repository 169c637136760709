"""Auth bootstrap — turns an authorization code into a signed-in user.

Flow for one callback request:
1. Exchange the code for a session with the identity provider.
   Any failure here aborts the sign-in.
2. Resolve the identity behind the new session. "No identity" is not
   fatal (the session may not have propagated yet); provisioning is
   skipped and the sign-in still succeeds.
3. Reconcile the identity with the `users` table, creating the profile
   on first login. Store failures here are logged, not surfaced: the
   profile can be synced on a later login.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from taskhub.auth.provider import AuthProviderError, IdentityProvider
from taskhub.db.engine import STORE_ERRORS
from taskhub.schemas.auth import AuthSession, Identity, ProfileCreate
from taskhub.services.profile_service import ProfileService

logger = structlog.get_logger()


class AuthenticationFailed(Exception):
    """Raised when the code is missing or the provider rejects it."""


@dataclass
class SignInResult:
    session: AuthSession
    identity: Optional[Identity] = None
    profile_created: bool = False


class AuthBootstrapService:
    """Single-shot sign-in: exchange, resolve, provision."""

    def __init__(self, provider: IdentityProvider, profiles: ProfileService):
        self.provider = provider
        self.profiles = profiles

    async def sign_in(
        self, code: Optional[str], code_verifier: Optional[str] = None
    ) -> SignInResult:
        if not code:
            raise AuthenticationFailed("Missing authorization code")

        try:
            session = await self.provider.exchange_code_for_session(code, code_verifier)
        except AuthProviderError as e:
            logger.warning("auth.code_exchange_failed", error=str(e))
            raise AuthenticationFailed(str(e)) from e

        identity = await self._resolve_identity(session)
        if identity is None:
            logger.info("auth.identity_unresolved")
            return SignInResult(session=session)

        created = await self.ensure_profile(identity)
        return SignInResult(session=session, identity=identity, profile_created=created)

    async def ensure_profile(self, identity: Identity) -> bool:
        """Create the profile for a first-time identity.

        Returns True only if this call inserted the row. Store errors are
        logged and swallowed. An identity without an email cannot be
        provisioned; that is logged as an error and provisioning is skipped.
        """
        if not identity.email:
            logger.error(
                "auth.profile_invariant_violated",
                user_id=identity.id,
                reason="missing email",
            )
            return False

        try:
            if await self.profiles.find_profile(identity.id) is not None:
                logger.info("auth.returning_user", user_id=identity.id)
                return False
            created = await self.profiles.insert_profile(
                ProfileCreate.from_identity(identity)
            )
        except STORE_ERRORS as e:
            await self.profiles.db.rollback()
            logger.warning(
                "auth.profile_sync_failed", user_id=identity.id, error=str(e)
            )
            return False

        if created:
            logger.info("auth.profile_created", user_id=identity.id)
        return created

    async def _resolve_identity(self, session: AuthSession) -> Optional[Identity]:
        try:
            return await self.provider.get_user(session.access_token)
        except AuthProviderError as e:
            logger.warning("auth.identity_lookup_failed", error=str(e))
            return None
