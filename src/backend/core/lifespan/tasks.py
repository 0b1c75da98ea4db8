"""
Lifespan startup and shutdown task functions.

Each function handles one step of the application startup or shutdown
sequence.
"""

import logging


async def initialize_logging(settings, log_config):
    """Setup logging configuration."""
    from core.logging_config import setup_logging

    logger = logging.getLogger("main")
    setup_logging(log_config)
    logger.info(f"🚀 Starting {settings.api.app_name} v{settings.api.app_version}...")


async def log_cors_configuration(settings, logger):
    """Log CORS configuration for debugging."""
    logger.info(f"🔒 CORS Allowed Origins: {settings.cors.origins}")


async def initialize_database():
    """Create missing database tables."""
    from core.database import init_db

    logger = logging.getLogger("main")
    await init_db()
    print("✅ Database initialized")
    logger.info("✅ Database initialized")


async def initialize_minio(storage):
    """Ensure the supporting-document bucket exists. Failure is not fatal."""
    logger = logging.getLogger("main")
    if not storage.enabled:
        logger.info("MinIO storage disabled, skipping bucket check")
        return

    try:
        await storage.ensure_bucket_exists()
        print("✅ MinIO storage initialized")
        logger.info("✅ MinIO storage initialized")
    except Exception as e:
        print(f"⚠️  MinIO initialization failed: {e}")
        logger.warning(f"⚠️  MinIO initialization failed: {e}")


async def start_background_scheduler(settings):
    """Start the APScheduler expiry job."""
    from core.scheduler import start_scheduler

    logger = logging.getLogger("main")
    try:
        if start_scheduler(settings.scheduler) is not None:
            print("✅ Expiry scheduler started")
            logger.info("✅ Expiry scheduler started")
    except Exception as e:
        print(f"⚠️  Scheduler initialization failed: {e}")
        logger.warning(f"⚠️  Scheduler initialization failed: {e}")


async def shutdown_scheduler_task():
    """Shutdown the APScheduler expiry job."""
    from core.scheduler import shutdown_scheduler

    logger = logging.getLogger("main")
    try:
        shutdown_scheduler()
        logger.info("✅ Expiry scheduler shut down")
    except Exception as e:
        logger.warning(f"⚠️  Scheduler shutdown error: {e}")


async def shutdown_database():
    """Close database connections."""
    from core.database import close_db

    logger = logging.getLogger("main")
    await close_db()
    print("✅ Database connections closed")
    logger.info("✅ Database connections closed")
