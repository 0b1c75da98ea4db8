"""Accommodation tracking endpoints."""

from . import records, restrictions, seat_counts, webhook

__all__ = [
    "records",
    "restrictions",
    "seat_counts",
    "webhook",
]
