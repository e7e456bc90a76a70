"""
cinerank API: FastAPI app factory.

Use: uvicorn cinerank_server.app:app
Or:  from cinerank_server import create_app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinerank import __version__

from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup/shutdown hooks."""
    app = FastAPI(
        title="cinerank API",
        description="Personalized recommendation scoring with behavioral boosts and smart caching",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    def _startup():
        state = get_state()
        ok, errors = state.config.validate()
        for error in errors:
            logger.warning("[startup] CONFIG_WARNING %s", error)
        state.service.start()
        logger.info(
            "[startup] cinerank API ready provider=%s valid_config=%s",
            state.config.embedding_provider, ok,
        )

    @app.on_event("shutdown")
    def _shutdown():
        get_state().service.shutdown()

    return app


app = create_app()
