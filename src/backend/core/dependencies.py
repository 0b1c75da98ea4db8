"""
Service dependencies for FastAPI.

Each component receives its own settings section. Storage and dispatcher
are process-wide singletons so the MinIO client and bucket check are reused;
tests replace them through app.dependency_overrides.
"""

from functools import lru_cache

from core.config import get_settings
from services.accommodation_service import AccommodationService
from services.minio_service import AttachmentStorage
from services.notification_dispatcher import NotificationDispatcher
from services.occupancy_service import OccupancyService


def get_accommodation_service() -> AccommodationService:
    return AccommodationService(get_settings().accommodations)


def get_occupancy_service() -> OccupancyService:
    return OccupancyService(get_settings().accommodations)


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(get_settings().notification)


@lru_cache
def get_attachment_storage() -> AttachmentStorage:
    return AttachmentStorage(get_settings().minio)
