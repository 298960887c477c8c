"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no gate); /signout checks its own header.
"""

from fastapi import APIRouter, Depends

from smartbrain.api.auth import router as auth_router
from smartbrain.api.health import router as health_router
from smartbrain.api.image import router as image_router
from smartbrain.api.profile import router as profile_router
from smartbrain.auth.dependencies import require_session

# All protected routers require a live session
_auth = [Depends(require_session)]

api_router = APIRouter()

# Open routes — no session required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a token present in the session store
api_router.include_router(profile_router, tags=["profile"], dependencies=_auth)
api_router.include_router(image_router, tags=["image"], dependencies=_auth)
