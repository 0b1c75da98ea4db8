"""
Enums for database models.

Fixed value sets that never change at runtime and need no lookup table.
"""
from enum import Enum


class ShiftBucket(str, Enum):
    """
    Classified shift bucket of an accommodation record.

    FHD/FHN are front-half day/night, BHD/BHN back-half day/night.
    """
    FHD = "FHD"
    FHN = "FHN"
    BHD = "BHD"
    BHN = "BHN"
    FLEX = "FLEX"
    UNKNOWN = "unknown"


class SubmissionResult(str, Enum):
    """Outcome of a create-or-update write."""
    CREATED = "created"
    UPDATED = "updated"
