"""Main FastAPI application for the Gemini proxy."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from .adapter import GeminiAdapter
from .api.routes import catch_all, chat_completions, health
from .client_cache import ClientCache
from .config_loader import Settings, load_settings
from .logging import RequestDumpWriter, setup_logging

logger = logging.getLogger("gemproxy")


def create_app(
    settings: Optional[Settings] = None,
    *,
    client_cache: Optional[ClientCache] = None,
    dump_writer: Optional[RequestDumpWriter] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings; loaded from the config file when omitted.
        client_cache: Gemini client cache; a fresh one when omitted.
        dump_writer: Request dump writer; built from settings when omitted
            and dumping is enabled.

    Returns:
        The configured FastAPI application instance.
    """
    if settings is None:
        settings = load_settings()
        setup_logging(settings.log_level)

    clients = client_cache or ClientCache()
    if dump_writer is None and settings.dump_failed_requests:
        dump_writer = RequestDumpWriter(Path(settings.dump_dir))

    app = FastAPI(title="gemproxy")
    app.state.settings = settings
    app.state.clients = clients
    app.state.dump_writer = dump_writer
    app.state.adapter = GeminiAdapter(
        clients,
        text_model=settings.text_model,
        vision_model=settings.vision_model,
    )

    @app.on_event("startup")
    async def startup_event():
        """Handle application startup."""
        logger.info("gemproxy server starting up...")
        logger.info("Configured bind address %s:%s", settings.host, settings.port)
        logger.info(f"Text model: {settings.text_model}, vision model: {settings.vision_model}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Terminate all clients before exiting."""
        await clients.aclose()
        logger.info("gemproxy server stopped")

    # Register routes; the catch-all must stay last
    app.post("/chat/completions")(chat_completions)
    app.post("/v1/chat/completions")(chat_completions)
    app.get("/health")(health)
    app.api_route(
        "/{path:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
        include_in_schema=False,
    )(catch_all)

    return app


def run() -> None:
    """Console entry point: load settings and serve with uvicorn."""
    import uvicorn

    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Listening on %s:%s. press ctrl + c to cancel", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
