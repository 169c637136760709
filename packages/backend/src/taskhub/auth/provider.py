"""Identity provider client.

Two operations are consumed from the provider:
- exchange an OAuth/PKCE authorization code for a session
- resolve the identity behind a session's access token

IdentityProvider is the seam routes depend on; GoTrueIdentityProvider
talks to a GoTrue-compatible REST API over a shared httpx.AsyncClient.
Tests swap in their own implementation via dependency overrides.
"""

from typing import Optional, Protocol

import httpx

from taskhub.schemas.auth import AuthSession, Identity


class AuthProviderError(Exception):
    """Raised when the identity provider rejects a call or is unreachable."""


class IdentityProvider(Protocol):
    async def exchange_code_for_session(
        self, code: str, code_verifier: Optional[str] = None
    ) -> AuthSession: ...

    async def get_user(self, access_token: str) -> Optional[Identity]: ...


class GoTrueIdentityProvider:
    """IdentityProvider backed by the GoTrue REST API.

    The httpx client is owned by the caller when passed in; otherwise one
    is created and closed by aclose().
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"apikey": api_key} if api_key else {}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def exchange_code_for_session(
        self, code: str, code_verifier: Optional[str] = None
    ) -> AuthSession:
        """POST /token?grant_type=pkce → session tokens."""
        try:
            resp = await self._client.post(
                f"{self.base_url}/token",
                params={"grant_type": "pkce"},
                json={"auth_code": code, "code_verifier": code_verifier or ""},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"Code exchange failed: {e}") from e

        if resp.status_code != 200:
            raise AuthProviderError(
                f"Code exchange rejected ({resp.status_code}): {_error_message(resp)}"
            )

        data = resp.json()
        if not data.get("access_token"):
            raise AuthProviderError("Code exchange returned no access token")

        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type") or "bearer",
            expires_in=data.get("expires_in"),
        )

    async def get_user(self, access_token: str) -> Optional[Identity]:
        """GET /user → the identity behind the token, or None if unknown.

        401/403/404 mean the token does not (yet) resolve to a user and
        return None. Anything else unexpected raises AuthProviderError.
        """
        try:
            resp = await self._client.get(
                f"{self.base_url}/user",
                headers={**self._headers, "Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"User lookup failed: {e}") from e

        if resp.status_code in (401, 403, 404):
            return None
        if resp.status_code != 200:
            raise AuthProviderError(
                f"User lookup failed ({resp.status_code}): {_error_message(resp)}"
            )

        data = resp.json()
        if not data.get("id"):
            return None

        metadata = data.get("user_metadata") or {}
        return Identity(
            id=str(data["id"]),
            email=data.get("email") or None,
            full_name=metadata.get("full_name") or metadata.get("name") or None,
            avatar_url=metadata.get("avatar_url") or metadata.get("picture") or None,
        )


def _error_message(resp: httpx.Response) -> str:
    """Best-effort error text from a GoTrue error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if not isinstance(body, dict):
        return str(body)[:200]
    return str(
        body.get("error_description")
        or body.get("msg")
        or body.get("message")
        or body.get("error")
        or body
    )[:200]
