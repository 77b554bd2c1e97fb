"""
File Ingest Trigger - Main FastAPI Application

Hosts the inbound file adapter:
- Watches the configured directory for new files
- Accepts explicit file trigger requests
- Hands each accepted file downstream as an open stream
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from app.api import health, trigger
from app.utils.config import Settings, get_settings
from app.utils.helpers import configure_logging
from domains.file_ingest import InboundFileAdapter
from domains.file_ingest.collectors.inbound_file_adapter import Outbound
from domains.file_ingest.collectors.sinks import LoggingSink


def create_app(settings: Optional[Settings] = None, outbound: Optional[Outbound] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings to use instead of the cached environment settings
        outbound: Downstream consumer; defaults to a LoggingSink

    Returns:
        FastAPI application whose lifespan starts and stops the adapter
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting {settings.api_title} v{settings.api_version}")

        try:
            await app.state.adapter.start()
        except OSError as e:
            logger.error(f"Failed to start inbound adapter: {e}")
            raise

        yield

        # Cleanup
        logger.info("Shutting down application...")
        await app.state.adapter.stop()
        await app.state.adapter.wait_idle()
        logger.success("Application shut down complete")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Directory watcher and file trigger intake",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.adapter = InboundFileAdapter(
        outbound or LoggingSink(),
        settings.adapter_options(),
        name=settings.step_name,
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
            }
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(trigger.router, prefix="/trigger", tags=["Trigger"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.api_title,
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
            "health": "/health"
        }

    return app


configure_logging(get_settings().log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=get_settings().api_port,
        reload=True,
        log_level=get_settings().log_level.lower()
    )
