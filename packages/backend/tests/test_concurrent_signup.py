"""Concurrent signup tests: races are settled by the database.

Learn: The shared in-memory fixture runs on a single connection, so it can
never interleave two transactions. These tests use a file-backed SQLite
database with NullPool instead. Every session opens its own connection and
asyncio.gather fires the signups at once, each on its own session.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from chatserver.db.models import NO_OWNER, Base, User, Workspace
from chatserver.errors import EmailAlreadyExists, WorkspaceNameConflict
from chatserver.schemas.user import CreateUser
from chatserver.services.identity_store import IdentityStore
from chatserver.services.provisioning_service import ProvisioningService
from conftest import enable_sqlite_foreign_keys

ATTEMPTS = 4


@pytest_asyncio.fixture()
async def file_sessions(tmp_path):
    """Session factory over a file database; one connection per session."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'signup.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


async def _signup(factory, body: CreateUser):
    async with factory() as session:
        return await ProvisioningService(session).create_user(body)


async def _race(factory, bodies: list[CreateUser]) -> list:
    return await asyncio.gather(
        *(_signup(factory, b) for b in bodies), return_exceptions=True
    )


async def _scalar(factory, q):
    async with factory() as session:
        return (await session.execute(q)).scalar_one()


def _body(i: int, email: str, workspace: str) -> CreateUser:
    return CreateUser(
        fullname=f"User {i}", email=email, workspace=workspace, password="hunter42"
    )


# ═══════════════════════════════════════════════════════════
# Same email
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_concurrent_same_email_creates_one_user(file_sessions):
    bodies = [_body(i, "same@acme.org", f"team-{i}") for i in range(ATTEMPTS)]
    results = await _race(file_sessions, bodies)

    created = [r for r in results if isinstance(r, User)]
    rejected = [r for r in results if not isinstance(r, User)]
    assert len(created) == 1
    assert all(isinstance(r, EmailAlreadyExists) for r in rejected), rejected

    count = await _scalar(
        file_sessions,
        select(func.count()).select_from(User).where(User.email == "same@acme.org"),
    )
    assert count == 1


# ═══════════════════════════════════════════════════════════
# Same new workspace
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_concurrent_new_workspace_has_one_owner(file_sessions):
    bodies = [_body(i, f"user{i}@acme.org", "acme") for i in range(ATTEMPTS)]
    results = await _race(file_sessions, bodies)

    created = [r for r in results if isinstance(r, User)]
    losers = [r for r in results if not isinstance(r, User)]
    assert created
    assert all(isinstance(r, WorkspaceNameConflict) for r in losers), losers

    assert await _scalar(
        file_sessions,
        select(func.count()).select_from(Workspace).where(Workspace.name == "acme"),
    ) == 1

    async with file_sessions() as session:
        ws = await IdentityStore(session).find_workspace_by_name("acme")
        members = await IdentityStore(session).list_users_by_workspace(ws.id)
    assert ws.owner_id != NO_OWNER
    assert ws.owner_id in {u.id for u in created}
    assert {m.id for m in members} == {u.id for u in created}


@pytest.mark.asyncio
async def test_concurrent_first_joins_leave_one_owner(file_sessions):
    """Everyone joins an existing unowned workspace; exactly one is promoted."""
    async with file_sessions() as session:
        await IdentityStore(session).insert_workspace("acme")

    bodies = [_body(i, f"user{i}@acme.org", "acme") for i in range(ATTEMPTS)]
    results = await _race(file_sessions, bodies)

    assert all(isinstance(r, User) for r in results), results
    async with file_sessions() as session:
        ws = await IdentityStore(session).find_workspace_by_name("acme")
    assert ws.owner_id in {u.id for u in results}
