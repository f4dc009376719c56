"""Entry point: ``python -m src.service``."""

from __future__ import annotations

import logging

import uvicorn

from src.api_client.config import load_settings

from .app import create_app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = load_settings()
    logging.getLogger(__name__).info(
        "Backend proxy listening on %s:%d", settings.host, settings.port
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
