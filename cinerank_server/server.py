"""
cinerank API server: entrypoint for `python -m cinerank_server.server`.

For uvicorn use cinerank_server.app:app.
"""

import logging

import uvicorn

from .app import app
from .config import get_config


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    config = get_config()
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
