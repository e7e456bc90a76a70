"""Root and health endpoints."""

from fastapi import APIRouter

from cinerank import __version__

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    config = state.config
    return {
        "name": "cinerank API",
        "version": __version__,
        "status": "ok",
        "embedding_provider": config.embedding_provider,
        "weights_version": state.service.config.version,
        "endpoints": {
            "recommendations": ["/api/recommendations"],
            "users": ["/api/users/{user_id}/profile"],
            "cache": ["/api/cache/stats", "/api/cache/invalidate", "/api/cache/warm"],
        },
    }
