"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in a router without
modifying individual handlers. Health, signup and signin are open.
"""

from fastapi import APIRouter, Depends

from chatserver.api.auth import router as auth_router
from chatserver.api.health import router as health_router
from chatserver.api.users import router as users_router
from chatserver.auth.dependencies import authenticate

# All protected routers require a valid bearer token
_auth = [Depends(authenticate)]

api_router = APIRouter(prefix="/api")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid bearer token
api_router.include_router(users_router, tags=["users", "workspace"], dependencies=_auth)
