"""GoTrue client tests against httpx.MockTransport (no network)."""

import json

import httpx
import pytest

from taskhub.auth.provider import AuthProviderError, GoTrueIdentityProvider

AUTH_URL = "https://auth.example.com/auth/v1"


def _provider(handler) -> GoTrueIdentityProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoTrueIdentityProvider(AUTH_URL, api_key="anon-key", client=client)


@pytest.mark.asyncio
async def test_exchange_posts_pkce_grant():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers.get("apikey")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "access_token": "at",
                "refresh_token": "rt",
                "token_type": "bearer",
                "expires_in": 3600,
                "user": {"id": "u1"},
            },
        )

    session = await _provider(handler).exchange_code_for_session("the-code", "the-verifier")

    assert seen["url"] == f"{AUTH_URL}/token?grant_type=pkce"
    assert seen["apikey"] == "anon-key"
    assert seen["body"] == {"auth_code": "the-code", "code_verifier": "the-verifier"}
    assert session.access_token == "at"
    assert session.refresh_token == "rt"
    assert session.expires_in == 3600


@pytest.mark.asyncio
async def test_exchange_rejected():
    def handler(request):
        return httpx.Response(
            400,
            json={"error": "invalid_grant", "error_description": "Flow state expired"},
        )

    with pytest.raises(AuthProviderError, match="Flow state expired"):
        await _provider(handler).exchange_code_for_session("old")


@pytest.mark.asyncio
async def test_exchange_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AuthProviderError):
        await _provider(handler).exchange_code_for_session("code")


@pytest.mark.asyncio
async def test_get_user_maps_metadata():
    def handler(request):
        assert request.url.path == "/auth/v1/user"
        assert request.headers["authorization"] == "Bearer at"
        return httpx.Response(
            200,
            json={
                "id": "u1",
                "email": "a@b.com",
                "user_metadata": {
                    "full_name": "Ada Lovelace",
                    "avatar_url": "https://cdn.example.com/a.png",
                },
            },
        )

    identity = await _provider(handler).get_user("at")
    assert identity.id == "u1"
    assert identity.email == "a@b.com"
    assert identity.full_name == "Ada Lovelace"
    assert identity.avatar_url == "https://cdn.example.com/a.png"


@pytest.mark.asyncio
async def test_get_user_without_metadata():
    def handler(request):
        return httpx.Response(200, json={"id": "u2", "email": "c@d.com"})

    identity = await _provider(handler).get_user("at")
    assert identity.full_name is None
    assert identity.avatar_url is None


@pytest.mark.asyncio
async def test_get_user_unauthorized_is_none():
    def handler(request):
        return httpx.Response(401, json={"msg": "invalid JWT"})

    assert await _provider(handler).get_user("bad") is None


@pytest.mark.asyncio
async def test_get_user_server_error_raises():
    def handler(request):
        return httpx.Response(503, text="upstream unavailable")

    with pytest.raises(AuthProviderError, match="503"):
        await _provider(handler).get_user("at")
