"""
Business logic services.
"""
from .accommodation_service import AccommodationService, SubmissionOutcome
from .minio_service import AttachmentStorage
from .notification_dispatcher import NotificationDispatcher, RestrictionNotice
from .occupancy_service import OccupancyService, OccupancySnapshot, aggregate
from .shift_classifier import SHIFT_DAYS, WEEKDAYS, ShiftClassifier

__all__ = [
    "AccommodationService",
    "SubmissionOutcome",
    "AttachmentStorage",
    "NotificationDispatcher",
    "RestrictionNotice",
    "OccupancyService",
    "OccupancySnapshot",
    "aggregate",
    "ShiftClassifier",
    "SHIFT_DAYS",
    "WEEKDAYS",
]
