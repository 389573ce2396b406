"""Test fixtures: in-memory database, throwaway keys, ASGI client.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets a fresh in-memory SQLite database (aiosqlite). StaticPool
   keeps the single connection alive so every session sees the same data.
2. The app's get_db is overridden to open a new session per request from
   that engine, mirroring production's one-session-per-request scope.
3. A fresh Ed25519 key pair is generated once per test session and handed
   to create_app(codec=...), so nothing is read from disk and the lifespan
   (key loading, Postgres ping, Redis) never runs under ASGITransport.
"""

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chatserver.auth.jwt import TokenCodec
from chatserver.db.engine import get_db
from chatserver.db.models import Base
from chatserver.main import create_app


TEST_DB_URL = "sqlite+aiosqlite://"


def enable_sqlite_foreign_keys(engine):
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _fk_on(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="session")
def signing_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture(scope="session")
def codec(signing_key) -> TokenCodec:
    return TokenCodec(signing_key, signing_key.public_key())


@pytest.fixture()
def key_files(tmp_path, signing_key):
    """The session key pair written out as PEM files: (sk_path, pk_path)."""
    sk_path = tmp_path / "encoding.pem"
    pk_path = tmp_path / "decoding.pem"
    sk_path.write_bytes(
        signing_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    pk_path.write_bytes(
        signing_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return sk_path, pk_path


@pytest_asyncio.fixture()
async def db_engine():
    """Fresh in-memory schema per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for tests that drive the store/service directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app(session_factory, codec):
    """App with get_db pointed at the in-memory database."""
    application = create_app(codec=codec)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client against the real auth pipeline (no auth override)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup(client, fullname, email, workspace, password="hunter42"):
    """POST /api/signup and return the token."""
    r = await client.post(
        "/api/signup",
        json={
            "fullname": fullname,
            "email": email,
            "workspace": workspace,
            "password": password,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
