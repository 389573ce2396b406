"""SQLAlchemy ORM models: single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations are written against these models.

Key concepts:
- Integer primary keys assigned by the database (BIGSERIAL on Postgres)
- UNIQUE constraints on users.email and workspaces.name are the
  authoritative guard against duplicate signups; application-level
  pre-checks only produce nicer errors
- server_default for created_at so raw SQL inserts get it too
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = BigInteger().with_variant(Integer(), "sqlite")

# Sentinel stored in workspaces.owner_id until the first member is promoted.
NO_OWNER = 0


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Workspace(Base):
    """A named tenant boundary grouping users and chats.

    Learn: owner_id is NOT a foreign key. A workspace can exist before any
    user does (it is created as a side effect of the first signup), so the
    column holds NO_OWNER until the first member is promoted.
    """

    __tablename__ = "workspaces"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    owner_id: Mapped[int] = mapped_column(
        IdType, nullable=False, default=NO_OWNER, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    @property
    def has_owner(self) -> bool:
        return self.owner_id != NO_OWNER


class User(Base):
    """A chat user. Belongs to exactly one workspace.

    Learn: password_hash is deferred: ordinary loads never pull it into
    memory. Only the signin path asks for it explicitly via undefer().
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    ws_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("workspaces.id"), nullable=False, index=True
    )
    fullname: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, deferred=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
