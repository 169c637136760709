"""Test fixtures — isolated database per test, fake identity provider.

Each test gets a fresh database (in-memory SQLite through aiosqlite
unless TASKHUB_TEST_DATABASE_URL points somewhere else) with the schema
created from the models, and an HTTP client whose get_db and
get_identity_provider dependencies are overridden. No network access.
"""

import os
from typing import Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from taskhub.auth.dependencies import get_identity_provider
from taskhub.auth.provider import AuthProviderError
from taskhub.db.engine import get_db
from taskhub.db.models import Base, Project, Task, User
from taskhub.main import app
from taskhub.schemas.auth import AuthSession, Identity


TEST_DB_URL = os.environ.get(
    "TASKHUB_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)


class FakeIdentityProvider:
    """In-memory IdentityProvider.

    Codes registered with add_code() exchange successfully; any other
    code is rejected. Each session's access token resolves to the
    identity the code was registered with (which may be None).
    """

    def __init__(self):
        self._codes: dict[str, Optional[Identity]] = {}
        self._tokens: dict[str, Optional[Identity]] = {}
        self.exchanged: list[str] = []
        self.verifiers: list[Optional[str]] = []

    def add_code(self, code: str, identity: Optional[Identity]) -> None:
        self._codes[code] = identity

    def add_token(self, token: str, identity: Optional[Identity]) -> None:
        self._tokens[token] = identity

    async def exchange_code_for_session(
        self, code: str, code_verifier: Optional[str] = None
    ) -> AuthSession:
        self.exchanged.append(code)
        self.verifiers.append(code_verifier)
        if code not in self._codes:
            raise AuthProviderError("invalid flow state, no valid flow state found")
        token = f"access-{code}"
        self._tokens[token] = self._codes[code]
        return AuthSession(
            access_token=token,
            refresh_token=f"refresh-{code}",
            expires_in=3600,
        )

    async def get_user(self, access_token: str) -> Optional[Identity]:
        return self._tokens.get(access_token)


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a freshly created schema."""
    kwargs = {}
    if TEST_DB_URL.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    engine = create_async_engine(TEST_DB_URL, echo=False, **kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def unreachable_db():
    """Session on a database nobody listens on (port 1 refuses connections)."""
    engine = create_async_engine("postgresql+asyncpg://taskhub:x@127.0.0.1:1/taskhub")
    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def identity_provider():
    return FakeIdentityProvider()


@pytest_asyncio.fixture()
async def client(db_session, identity_provider):
    """HTTP client with the app's database and identity provider overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Data helpers ───────────────────────────────────────


async def make_project(db: AsyncSession, title: str, description: str = "", **kw) -> Project:
    slug = kw.pop("slug", None) or title.lower().replace(" ", "-")
    project = Project(title=title, slug=slug, description=description, **kw)
    db.add(project)
    await db.commit()
    return project


async def make_task(
    db: AsyncSession, project: Project, title: str, description: str = "", **kw
) -> Task:
    task = Task(project_id=project.id, title=title, description=description, **kw)
    db.add(task)
    await db.commit()
    return task


async def make_user(db: AsyncSession, user_id: str, email: str, **kw) -> User:
    user = User(id=user_id, email=email, **kw)
    db.add(user)
    await db.commit()
    return user
