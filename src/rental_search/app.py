"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rental_search import __version__
from rental_search.api import router
from rental_search.api.dependencies import close_pricing_api
from rental_search.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Закрываем общий HTTP-клиент при остановке приложения
    await close_pricing_api()


def create_app() -> FastAPI:
    """Create and configure FastAPI application instance."""
    configure_logging()
    app = FastAPI(title="Rental Search API", version=__version__, lifespan=lifespan)
    app.include_router(router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        """Simple endpoint to verify that the service is alive."""
        return {"status": "ok"}

    return app


app = create_app()
