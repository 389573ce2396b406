"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or on a whole router
via include_router(dependencies=...)) to resolve the bearer token into the
identity making the request. A failure short-circuits with 401 before the
handler runs.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request

from chatserver.auth.jwt import TokenCodec, TokenError

logger = structlog.get_logger()


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail="Unauthenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. All downstream code scopes by ws_id."""

    user_id: int
    ws_id: int


def get_codec(request: Request) -> TokenCodec:
    """The process-wide TokenCodec, loaded once in the app lifespan."""
    codec = getattr(request.app.state, "codec", None)
    if codec is None:
        raise RuntimeError("TokenCodec not initialized. Is the lifespan running?")
    return codec


async def authenticate(
    request: Request,
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_codec),
) -> Identity:
    """Resolve the bearer token to an Identity (required: 401 if absent).

    Learn: Missing, malformed, forged and expired tokens all produce the
    same response. The reason is logged, never returned.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthenticated()

    token = authorization[7:].strip()
    try:
        claims = codec.verify(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=type(e).__name__)
        raise _unauthenticated()

    identity = Identity(user_id=claims.user_id, ws_id=claims.ws_id)
    request.state.identity = identity
    return identity
