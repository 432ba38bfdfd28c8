"""Shared fixtures: repositories for both backends and an HTTP client."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from captains_log.database import Base, create_engine, create_session_factory
from captains_log.main import app
from captains_log.repositories import build_memory_repository, build_sql_repository, get_repository
from captains_log.services.auth import AuthService, AuthSession

TEST_PASSWORD = "engage-warp-9"


async def make_sql_repository():
    engine = create_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return build_sql_repository(engine, create_session_factory(engine))


@pytest.fixture(params=["memory", "sql"])
async def repository(request):
    """The same repository contract exercised against every backend."""
    if request.param == "memory":
        repo = build_memory_repository()
    else:
        repo = await make_sql_repository()
    yield repo
    await repo.close()


@pytest.fixture
def memory_repository():
    return build_memory_repository()


@pytest.fixture
async def user_id(repository):
    return await repository.users.create(
        {"email": "picard@enterprise.example", "password_hash": "not-a-real-hash"}
    )


@pytest.fixture
async def client(memory_repository, tmp_path, monkeypatch):
    """HTTP client bound to a fresh in-memory repository and upload directory."""
    from captains_log.config import settings

    monkeypatch.setattr(settings, "media_storage_path", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "client_shell_path", str(tmp_path / "dist"))
    app.dependency_overrides[get_repository] = lambda: memory_repository
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def auth_session(memory_repository):
    session = AuthSession()
    await AuthService(memory_repository).register(
        session, "riker@enterprise.example", TEST_PASSWORD, "Will Riker"
    )
    return session


@pytest.fixture
def auth_headers(auth_session):
    return {"Authorization": f"Bearer {auth_session.token}"}
