"""
Test configuration and fixtures
"""
import uuid
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from boxkeeper.core.database import build_engine, build_session_maker, init_db, get_db
from boxkeeper.main import app
from boxkeeper.models import Workspace, WorkspaceMember, MemberRole


# In-memory database, recreated for every test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def test_engine():
    """Create test database engine."""
    engine = build_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_session_maker(test_engine):
    """Create test session maker."""
    return build_session_maker(test_engine)


@pytest.fixture
async def db_session(test_session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with test_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def member_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def outsider_id() -> uuid.UUID:
    return uuid.uuid4()


async def _create_workspace(session_maker, name: str, owner_id: uuid.UUID) -> Workspace:
    """Committed from its own session so rollbacks in tests never expire it."""
    async with session_maker() as session:
        workspace = Workspace(name=name, owner_id=owner_id)
        session.add(workspace)
        await session.flush()
        session.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner_id, role=MemberRole.OWNER))
        await session.commit()
    return workspace


@pytest.fixture
async def workspace(test_session_maker, member_id) -> Workspace:
    """Workspace with ``member_id`` as its only member."""
    return await _create_workspace(test_session_maker, "Home", member_id)


@pytest.fixture
async def other_workspace(test_session_maker, member_id) -> Workspace:
    """Second workspace of the same member, for cross-workspace checks."""
    return await _create_workspace(test_session_maker, "Office", member_id)


@pytest.fixture
async def client(test_session_maker, member_id) -> AsyncGenerator[AsyncClient, None]:
    """Create test client acting as ``member_id``."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"X-User-Id": str(member_id)},
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def file_session_maker(tmp_path):
    """Session maker on a file database, so every session gets its own connection."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'boxkeeper.db'}", echo=False)
    await init_db(engine)

    yield build_session_maker(engine)

    await engine.dispose()


@pytest.fixture
async def file_workspace(file_session_maker, member_id) -> Workspace:
    return await _create_workspace(file_session_maker, "Home", member_id)
