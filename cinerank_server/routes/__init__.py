"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .cache import router as cache_router
from .recommendations import router as recommendations_router
from .root import router as root_router
from .users import router as users_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(recommendations_router, prefix="/api", tags=["recommendations"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(cache_router, prefix="/api/cache", tags=["cache"])
