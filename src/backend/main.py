"""
Main FastAPI application entry point.
"""

from app import create_app

# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    from core.config import settings
    from core.uvicorn_logging import build_uvicorn_logging_config

    uvicorn.run(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
        # One worker: the expiry scheduler runs in-process
        workers=1,
        log_level=settings.logging.level.lower(),
        log_config=build_uvicorn_logging_config(settings.logging.level),
        access_log=True,
        timeout_graceful_shutdown=10,
        server_header=False,
        timeout_keep_alive=5,
    )
