"""API route aggregation.

Everything here is mounted under /api in main.py. The sign-in callback
lives outside /api (the identity provider redirects browsers to
/auth/callback) and is mounted separately.
"""

from fastapi import APIRouter

from taskhub.api.auth import callback_router
from taskhub.api.auth import router as auth_router
from taskhub.api.health import router as health_router
from taskhub.api.search import router as search_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(search_router, tags=["search"])

__all__ = ["api_router", "callback_router"]
