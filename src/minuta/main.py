"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from minuta.config import AppConfig, load_config
from minuta.dependencies import AppContext, build_context
from minuta.logging import setup_logging
from minuta.routes import (
    audio_files_router,
    enrichment_router,
    events_router,
    meetings_router,
    settings_router,
    transcripts_router,
)

logger = setup_logging()


def create_app(
    config: AppConfig | None = None, context: AppContext | None = None
) -> FastAPI:
    """
    Creates the local API application.

    Args:
        config: Configuration used to build the context; loaded from the
            environment when omitted.
        context: A pre-built context, used as is instead of building one.

    Returns:
        The FastAPI application. Its lifespan owns the context.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_context = context or build_context(config or load_config())
        app.state.context = app_context
        await app_context.start()
        logger.info("Minuta started")
        try:
            yield
        finally:
            await app_context.aclose()
            logger.info("Minuta stopped")

    app = FastAPI(title="Minuta", lifespan=lifespan)
    app.include_router(meetings_router)
    app.include_router(audio_files_router)
    app.include_router(transcripts_router)
    app.include_router(settings_router)
    app.include_router(enrichment_router)
    app.include_router(events_router)
    return app
