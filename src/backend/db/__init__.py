"""
Database models using SQLModel.
"""
from .enums import ShiftBucket, SubmissionResult
from .models import AccommodationRecord, TableModel, utc_now

__all__ = [
    "AccommodationRecord",
    "ShiftBucket",
    "SubmissionResult",
    "TableModel",
    "utc_now",
]
