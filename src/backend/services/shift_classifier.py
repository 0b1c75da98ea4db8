"""
Shift Classifier - Pure functions mapping shift codes to shift buckets.

A shift code is free text entered by a requestor (e.g. "DA5-1830", "NB2200",
"RTN0600"). It is classified into one of the week-half buckets by ordered,
case-insensitive substring checks, and each bucket covers a fixed set of
weekdays.
"""
from typing import Any, Dict, Mapping, Optional, Tuple
import logging

from db.enums import ShiftBucket

logger = logging.getLogger(__name__)


# Ordered (token, bucket) rules, first match wins.
# "RTN" must precede "RT" and both day tokens must precede the night ones.
SHIFT_RULES: Tuple[Tuple[str, ShiftBucket], ...] = (
    ("RTN", ShiftBucket.BHN),
    ("DA", ShiftBucket.FHD),
    ("DB", ShiftBucket.BHD),
    ("DC", ShiftBucket.FHD),
    ("NA", ShiftBucket.FHN),
    ("NB", ShiftBucket.BHN),
    ("RT", ShiftBucket.BHD),
    ("FLEX", ShiftBucket.FLEX),
)

WEEKDAYS: Tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# Bucket -> weekdays it covers. UNKNOWN has no entry.
SHIFT_DAYS: Dict[ShiftBucket, Tuple[str, ...]] = {
    ShiftBucket.FHD: ("Sunday", "Monday", "Tuesday", "Wednesday"),
    ShiftBucket.FHN: ("Sunday", "Monday", "Tuesday", "Wednesday"),
    ShiftBucket.BHD: ("Wednesday", "Thursday", "Friday", "Saturday"),
    ShiftBucket.BHN: ("Wednesday", "Thursday", "Friday", "Saturday"),
    ShiftBucket.FLEX: WEEKDAYS,
}


class ShiftClassifier:
    """Pure functions for shift classification (no database access)."""

    @staticmethod
    def classify(raw_pattern: Optional[str]) -> ShiftBucket:
        """
        Classify a raw shift code into a bucket.

        Args:
            raw_pattern: Shift code as entered, may be None or empty

        Returns:
            Matching ShiftBucket, or ShiftBucket.UNKNOWN when nothing matches

        Edge Cases:
            - None or "" -> UNKNOWN
            - Only case is folded; punctuation and spacing are left alone
        """
        if not raw_pattern:
            return ShiftBucket.UNKNOWN

        folded = raw_pattern.upper()
        for token, bucket in SHIFT_RULES:
            if token in folded:
                logger.debug(f"Shift code {raw_pattern!r} matched {token} -> {bucket.value}")
                return bucket

        logger.debug(f"Shift code {raw_pattern!r} matched no rule, unknown")
        return ShiftBucket.UNKNOWN

    @staticmethod
    def parse_bucket(value: Optional[str]) -> ShiftBucket:
        """Interpret a stored shift_type string; anything unrecognised is UNKNOWN."""
        if not value:
            return ShiftBucket.UNKNOWN
        try:
            return ShiftBucket(value.upper())
        except ValueError:
            return ShiftBucket.UNKNOWN

    @staticmethod
    def effective_bucket(record: Any) -> ShiftBucket:
        """
        Bucket used for every read of a record.

        The stored shift_type wins when it is a real bucket; otherwise the
        bucket is re-derived from the raw shift_pattern. Works with ORM rows
        and any object exposing shift_type and shift_pattern attributes.
        """
        stored = ShiftClassifier.parse_bucket(getattr(record, "shift_type", None))
        if stored is not ShiftBucket.UNKNOWN:
            return stored
        return ShiftClassifier.classify(getattr(record, "shift_pattern", None))

    @staticmethod
    def days_for(
        bucket: ShiftBucket,
        day_map: Mapping[ShiftBucket, Tuple[str, ...]] = SHIFT_DAYS,
    ) -> Tuple[str, ...]:
        """Weekdays covered by a bucket; empty for UNKNOWN."""
        return tuple(day_map.get(bucket, ()))
