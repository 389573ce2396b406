"""Workspace membership API routes (protected).

Learn: Every route here is mounted behind the authenticate dependency, so
the caller's Identity is resolved (once per request) before the handler runs.
Queries are always scoped to the caller's own workspace.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chatserver.auth.dependencies import Identity, authenticate
from chatserver.db.engine import get_db
from chatserver.errors import StorageUnavailable
from chatserver.schemas.user import ChatUser, UserRead, WorkspaceRead
from chatserver.services.provisioning_service import ProvisioningService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> ProvisioningService:
    return ProvisioningService(db)


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: Identity = Depends(authenticate),
    svc: ProvisioningService = Depends(_svc),
):
    """Get the current authenticated user's info."""
    try:
        user = await svc.get_user(identity.user_id)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="Storage unavailable, retry later")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users", response_model=list[ChatUser])
async def list_chat_users(
    identity: Identity = Depends(authenticate),
    svc: ProvisioningService = Depends(_svc),
):
    """List members of the caller's workspace, oldest first."""
    try:
        return await svc.list_chat_users(identity.ws_id)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="Storage unavailable, retry later")


@router.get("/workspace", response_model=WorkspaceRead)
async def get_workspace(
    identity: Identity = Depends(authenticate),
    svc: ProvisioningService = Depends(_svc),
):
    """Get the caller's workspace."""
    try:
        ws = await svc.get_workspace(identity.ws_id)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="Storage unavailable, retry later")
    if not ws:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return ws
