"""Auth API: signup and signin.

Learn: Routes for obtaining a bearer token:
- POST /signup → create user (and workspace if new) → token
- POST /signin → email/password → token

Routes handle HTTP concerns (status codes, error responses), the
provisioning service handles the business logic.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chatserver.auth.dependencies import get_codec
from chatserver.auth.jwt import TokenCodec
from chatserver.db.engine import get_db
from chatserver.errors import (
    AuthenticationFailed,
    DeadlineExceeded,
    EmailAlreadyExists,
    StorageUnavailable,
    WorkspaceNameConflict,
)
from chatserver.schemas.user import AuthOutput, CreateUser, SigninUser
from chatserver.services.provisioning_service import ProvisioningService

logger = structlog.get_logger()

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> ProvisioningService:
    return ProvisioningService(db)


# ─── Signup ─────────────────────────────────────────────


@router.post("/signup", response_model=AuthOutput, status_code=201)
async def signup(
    body: CreateUser,
    svc: ProvisioningService = Depends(_svc),
    codec: TokenCodec = Depends(get_codec),
):
    """Create a user account and return a token for it."""
    try:
        user = await svc.create_user(body)
    except (EmailAlreadyExists, WorkspaceNameConflict) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (StorageUnavailable, DeadlineExceeded):
        raise HTTPException(status_code=503, detail="Service unavailable, retry later")

    return AuthOutput(token=codec.issue(user.id, user.ws_id))


# ─── Signin ─────────────────────────────────────────────


@router.post("/signin", response_model=AuthOutput)
async def signin(
    body: SigninUser,
    svc: ProvisioningService = Depends(_svc),
    codec: TokenCodec = Depends(get_codec),
):
    """Login with email and password → token."""
    try:
        user = await svc.verify_credentials(body)
    except (StorageUnavailable, DeadlineExceeded):
        raise HTTPException(status_code=503, detail="Service unavailable, retry later")

    if user is None:
        logger.info("auth.signin_failed")
        raise HTTPException(status_code=403, detail=str(AuthenticationFailed()))

    return AuthOutput(token=codec.issue(user.id, user.ws_id))
