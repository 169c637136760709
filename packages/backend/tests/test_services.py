"""Service-level tests: profile provisioning, search patterns, permissions."""

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import make_project, make_user
from taskhub.auth.permissions import user_permissions
from taskhub.db.models import User
from taskhub.schemas.auth import Identity, ProfileCreate
from taskhub.services.profile_service import ProfileService
from taskhub.services.search_service import build_pattern


# ─── Profiles ───────────────────────────────────────────


def test_profile_name_falls_back_to_email_local_part():
    profile = ProfileCreate.from_identity(Identity(id="u1", email="jane.doe@corp.io"))
    assert profile.full_name == "jane.doe"
    assert profile.avatar_url is None


def test_profile_requires_email():
    with pytest.raises(ValueError):
        ProfileCreate.from_identity(Identity(id="u1"))


@pytest.mark.asyncio
async def test_insert_profile_is_idempotent(db_session):
    svc = ProfileService(db_session)
    profile = ProfileCreate(id="u1", email="a@b.com", full_name="a")

    assert await svc.insert_profile(profile) is True
    assert await svc.insert_profile(profile) is False

    found = await svc.find_profile("u1")
    assert found.email == "a@b.com"
    assert found.role == "member"
    assert found.is_active is True


@pytest.mark.asyncio
async def test_find_profile_missing(db_session):
    assert await ProfileService(db_session).find_profile("nobody") is None


# ─── Search patterns ────────────────────────────────────


@pytest.mark.parametrize(
    "query,pattern",
    [
        ("EngIne", "%engine%"),
        ("50%", "%50\\%%"),
        ("snake_case", "%snake\\_case%"),
        ("a\\b", "%a\\\\b%"),
    ],
)
def test_build_pattern(query, pattern):
    assert build_pattern(query) == pattern


# ─── Permissions ────────────────────────────────────────


def test_anonymous_has_no_permissions():
    assert not any(user_permissions(None).model_dump().values())


@pytest.mark.asyncio
async def test_admin_role_grants_admin(db_session):
    user = await make_user(db_session, "u1", "lead@b.com", role="admin")
    perms = user_permissions(user, admin_emails=[])
    assert perms.is_admin is True
    assert perms.can_resolve_comments is True


def test_admin_email_match_is_case_insensitive():
    user = User(id="u1", email="Nuno@Example.com", role="member", is_active=True)
    assert user_permissions(user, ["nuno@example.com"]).is_admin is True


# ─── Vocabularies ───────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [{"status": "archived"}, {"priority": "urgent"}],
)
async def test_project_vocabulary_enforced(db_session, fields):
    with pytest.raises(IntegrityError):
        await make_project(db_session, "Out of vocabulary", **fields)


@pytest.mark.asyncio
async def test_user_role_enforced(db_session):
    with pytest.raises(IntegrityError):
        await make_user(db_session, "u1", "a@b.com", role="superuser")
