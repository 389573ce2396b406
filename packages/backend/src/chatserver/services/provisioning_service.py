"""Provisioning service: account creation and credential checks.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the store.

create_user() is a sequence of short transactions, not one big one:

1. reject a registered email (fast path; the UNIQUE index is the real guard)
2. find the workspace by name, or create it unowned
3. hash the password (in a worker thread, bounded by settings.hash_timeout)
4. insert the user
5. if the workspace had no owner, promote the new user (first writer wins)

A crash between 2 and 4 leaves an empty, unowned workspace. That is a
valid state: the next signup into it simply becomes its owner.
"""

import asyncio
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from chatserver.auth.password import hash_password, verify_password
from chatserver.config import settings
from chatserver.db.models import NO_OWNER, User, Workspace
from chatserver.errors import DeadlineExceeded, EmailAlreadyExists
from chatserver.schemas.user import ChatUser, CreateUser, SigninUser
from chatserver.services.identity_store import IdentityStore, scrub_password

logger = structlog.get_logger()


class ProvisioningService:
    """Creates users/workspaces and verifies credentials."""

    def __init__(self, db: AsyncSession, hash_timeout: Optional[float] = None):
        self.db = db
        self.store = IdentityStore(db)
        self.hash_timeout = settings.hash_timeout if hash_timeout is None else hash_timeout

    # ─── Signup ─────────────────────────────────────────

    async def create_user(self, body: CreateUser) -> User:
        if await self.store.find_user_by_email(body.email) is not None:
            raise EmailAlreadyExists(body.email)

        ws = await self.store.find_workspace_by_name(body.workspace)
        if ws is None:
            ws = await self.store.insert_workspace(body.workspace, NO_OWNER)
            logger.info("chatserver.workspace_created", ws_id=ws.id, name=ws.name)

        password_hash = await self._off_loop(hash_password, body.password)
        user = await self.store.insert_user(
            ws.id, body.email, body.fullname, password_hash
        )
        logger.info("chatserver.user_created", user_id=user.id, ws_id=ws.id)

        if not ws.has_owner:
            promoted = await self.store.update_workspace_owner(ws.id, user.id)
            if promoted is None:
                # Another first-joiner got there first.
                logger.debug(
                    "chatserver.owner_promotion_skipped", ws_id=ws.id, user_id=user.id
                )
            else:
                logger.info("chatserver.owner_promoted", ws_id=ws.id, user_id=user.id)

        return user

    # ─── Signin ─────────────────────────────────────────

    async def verify_credentials(self, body: SigninUser) -> Optional[User]:
        """Return the user if the password matches, else None.

        Unknown email, wrong password and an empty or corrupt stored hash
        all come back as None.
        """
        user = await self.store.find_user_by_email(body.email, with_password=True)
        if user is None:
            return None

        password_hash = user.password_hash
        scrub_password(user)
        is_valid = await self._off_loop(verify_password, body.password, password_hash)
        if not is_valid:
            return None
        return user

    # ─── Lookups ────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.store.find_user_by_id(user_id)

    async def get_workspace(self, ws_id: int) -> Optional[Workspace]:
        return await self.store.find_workspace_by_id(ws_id)

    async def list_chat_users(self, ws_id: int) -> list[ChatUser]:
        return await self.store.list_users_by_workspace(ws_id)

    # ─── Helpers ────────────────────────────────────────

    async def _off_loop(self, fn, *args):
        """Run argon2 work in a worker thread, bounded by hash_timeout.

        Learn: wait_for stops waiting but cannot kill the thread. The
        request fails fast and the thread finishes in the background.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args), timeout=self.hash_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("chatserver.hash_timeout", timeout=self.hash_timeout)
            raise DeadlineExceeded(f"password hashing exceeded {self.hash_timeout}s") from e
