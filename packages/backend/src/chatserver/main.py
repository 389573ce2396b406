"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown: the signing keys are loaded
and the database is pinged before the first request is accepted. If either
fails, startup fails and uvicorn exits: the server never runs half-configured.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatserver import __version__
from chatserver.api import api_router
from chatserver.auth.jwt import TokenCodec
from chatserver.config import Settings, settings

logger = structlog.get_logger()


def load_codec(cfg: Settings) -> TokenCodec:
    """Build the process-wide TokenCodec from configured key files."""
    return TokenCodec.load(
        cfg.auth_sk_path,
        cfg.auth_pk_path,
        issuer=cfg.jwt_issuer,
        audience=cfg.jwt_audience,
        expire_minutes=cfg.token_expire_minutes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. KeyLoadError and database errors propagate on purpose.
    """
    from chatserver.cache import close_redis, init_redis
    from chatserver.db.engine import check_connection, engine

    logger.info(
        "chatserver.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if app.state.codec is None:
        app.state.codec = load_codec(settings)
        logger.info("chatserver.keys_loaded", sk=settings.auth_sk_path, pk=settings.auth_pk_path)

    await check_connection()
    logger.info("chatserver.database_connected")

    try:
        await init_redis()
        logger.info("chatserver.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("chatserver.redis_unavailable", error=str(e))
        # Redis is optional: only rate limiting is lost

    yield

    logger.info("chatserver.shutdown")
    await close_redis()
    await engine.dispose()


def create_app(codec: Optional[TokenCodec] = None) -> FastAPI:
    """Build and return the FastAPI application.

    Pass a codec to skip loading keys from disk (tests do this).
    """
    app = FastAPI(
        title="Chat Server",
        description="Identity and access core for a multi-tenant chat backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.codec = codec

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → ServerTime → Security → RateLimit → CORS → handler

    from chatserver.middleware.rate_limit import RateLimitMiddleware
    from chatserver.middleware.request_id import RequestIdMiddleware
    from chatserver.middleware.security import SecurityHeadersMiddleware
    from chatserver.middleware.server_time import ServerTimeMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts_max_age=settings.hsts_max_age)
    app.add_middleware(ServerTimeMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/", include_in_schema=False)
    async def index():
        return {"message": "hello world"}

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: chatserver.main:app)
app = create_app()


def run() -> None:
    """Console entry point: serve with uvicorn."""
    import uvicorn

    uvicorn.run(
        "chatserver.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
