"""Identity store: data access for users and workspaces.

Learn: No business rules live here. Each write commits on its own, so a
provisioning sequence is several short transactions rather than one long
one. UNIQUE violations on email and workspace name become domain errors.
Any other integrity error (a dangling ws_id) is a bug and propagates.
Remaining database failures become StorageUnavailable.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer
from sqlalchemy.orm.attributes import set_committed_value

from chatserver.db.models import NO_OWNER, User, Workspace
from chatserver.errors import (
    EmailAlreadyExists,
    StorageUnavailable,
    WorkspaceNameConflict,
)
from chatserver.schemas.user import ChatUser

# asyncpg surfaces command timeouts and refused connections as OSError
# subclasses (TimeoutError, ConnectionRefusedError), outside SQLAlchemy.
_STORAGE_ERRORS = (SQLAlchemyError, OSError)


class IdentityStore:
    """Find/create/update operations on users and workspaces."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Users ──────────────────────────────────────────

    async def find_user_by_email(
        self, email: str, *, with_password: bool = False
    ) -> Optional[User]:
        """Look up a user. password_hash is only loaded when asked for."""
        q = select(User).where(User.email == email)
        if with_password:
            q = q.options(undefer(User.password_hash)).execution_options(
                populate_existing=True
            )
        return await self._first(q)

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        return await self._first(select(User).where(User.id == user_id))

    async def insert_user(
        self, ws_id: int, email: str, fullname: str, password_hash: str
    ) -> User:
        user = User(
            ws_id=ws_id,
            email=email,
            fullname=fullname,
            password_hash=password_hash,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if _violates(e, "users_email_key", "users.email"):
                raise EmailAlreadyExists(email) from e
            raise
        except _STORAGE_ERRORS as e:
            await self.db.rollback()
            raise StorageUnavailable(str(e)) from e
        await self._refresh(user)
        scrub_password(user)
        return user

    # ─── Workspaces ─────────────────────────────────────

    async def find_workspace_by_name(self, name: str) -> Optional[Workspace]:
        return await self._first(select(Workspace).where(Workspace.name == name))

    async def find_workspace_by_id(self, ws_id: int) -> Optional[Workspace]:
        return await self._first(select(Workspace).where(Workspace.id == ws_id))

    async def insert_workspace(self, name: str, owner_id: int = NO_OWNER) -> Workspace:
        ws = Workspace(name=name, owner_id=owner_id)
        self.db.add(ws)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if _violates(e, "workspaces_name_key", "workspaces.name"):
                raise WorkspaceNameConflict(name) from e
            raise
        except _STORAGE_ERRORS as e:
            await self.db.rollback()
            raise StorageUnavailable(str(e)) from e
        await self._refresh(ws)
        return ws

    async def update_workspace_owner(
        self, ws_id: int, user_id: int
    ) -> Optional[Workspace]:
        """Promote user_id to owner of ws_id, first writer wins.

        Learn: One conditional UPDATE does the whole check. It matches only
        while the workspace is still unowned AND the user is a member of
        it. A lost race or a non-member yields no row, and None is returned.
        """
        member_ws = select(User.ws_id).where(User.id == user_id).scalar_subquery()
        stmt = (
            update(Workspace)
            .where(
                Workspace.id == ws_id,
                Workspace.owner_id == NO_OWNER,
                member_ws == ws_id,
            )
            .values(owner_id=user_id)
            .returning(Workspace.id)
            .execution_options(synchronize_session=False)
        )
        updated = await self._execute_write(stmt, scalar=True)
        if updated is None:
            return None
        ws = await self.find_workspace_by_id(ws_id)
        if ws is not None:
            await self._refresh(ws)
        return ws

    async def list_users_by_workspace(self, ws_id: int) -> list[ChatUser]:
        """Members of a workspace in creation order."""
        q = (
            select(User.id, User.fullname, User.email)
            .where(User.ws_id == ws_id)
            .order_by(User.id)
        )
        try:
            result = await self.db.execute(q)
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(str(e)) from e
        return [ChatUser(id=r.id, fullname=r.fullname, email=r.email) for r in result]

    # ─── Helpers ────────────────────────────────────────

    async def _first(self, q):
        try:
            result = await self.db.execute(q)
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(str(e)) from e
        return result.scalars().first()

    async def _refresh(self, obj) -> None:
        try:
            await self.db.refresh(obj)
        except _STORAGE_ERRORS as e:
            raise StorageUnavailable(str(e)) from e

    async def _execute_write(self, stmt, *, scalar: bool = False):
        try:
            result = await self.db.execute(stmt)
            value = result.scalar_one_or_none() if scalar else None
            await self.db.commit()
        except _STORAGE_ERRORS as e:
            await self.db.rollback()
            raise StorageUnavailable(str(e)) from e
        return value


def scrub_password(user: User) -> None:
    """Drop the hash from a loaded user without marking it dirty."""
    set_committed_value(user, "password_hash", None)


def _violates(e: IntegrityError, *constraints: str) -> bool:
    """Check which constraint an IntegrityError names.

    Postgres reports the constraint name (users_email_key), SQLite the
    column (UNIQUE constraint failed: users.email).
    """
    msg = str(e.orig)
    return any(c in msg for c in constraints)
