"""
Seat occupancy aggregation.

Builds two views over approved seated accommodations:

- day_grid: weekday -> bucket -> number of records working that day
- distinct_counts: bucket -> number of records in the bucket

Both views are always fully populated with zeros, and records whose bucket
is unknown are left out of both.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import AccommodationSettings
from core.decorators import critical_database_operation
from crud import accommodation_crud
from db.enums import ShiftBucket
from services.shift_classifier import SHIFT_DAYS, WEEKDAYS, ShiftClassifier

logger = logging.getLogger(__name__)


@dataclass
class OccupancySnapshot:
    """Occupancy views keyed by weekday name and bucket code."""

    day_grid: Dict[str, Dict[str, int]] = field(default_factory=dict)
    distinct_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def seated_total(self) -> int:
        return sum(self.distinct_counts.values())

    def count_for(self, bucket: ShiftBucket) -> int:
        return self.distinct_counts.get(bucket.value, 0)


def empty_snapshot(
    day_map: Mapping[ShiftBucket, Tuple[str, ...]] = SHIFT_DAYS,
) -> OccupancySnapshot:
    buckets = [bucket.value for bucket in day_map]
    return OccupancySnapshot(
        day_grid={day: {bucket: 0 for bucket in buckets} for day in WEEKDAYS},
        distinct_counts={bucket: 0 for bucket in buckets},
    )


def aggregate(
    records: Iterable[Any],
    day_map: Mapping[ShiftBucket, Tuple[str, ...]] = SHIFT_DAYS,
) -> OccupancySnapshot:
    """
    Aggregate records into an OccupancySnapshot.

    The caller filters to the counted population (approved and seated).
    Each record counts once in distinct_counts and once per covered day in
    day_grid.
    """
    snapshot = empty_snapshot(day_map)
    skipped = 0

    for record in records:
        bucket = ShiftClassifier.effective_bucket(record)
        days = ShiftClassifier.days_for(bucket, day_map)
        if not days:
            skipped += 1
            continue

        for day in days:
            snapshot.day_grid[day][bucket.value] += 1
        snapshot.distinct_counts[bucket.value] += 1

    if skipped:
        logger.debug(f"Skipped {skipped} records with unknown shift bucket")

    return snapshot


class OccupancyService:
    """Loads the counted population and aggregates it."""

    def __init__(self, policy: AccommodationSettings):
        self.policy = policy

    @critical_database_operation("occupancy_snapshot")
    async def snapshot(self, db: AsyncSession) -> OccupancySnapshot:
        records = await accommodation_crud.list_seated(
            db, status=self.policy.approved_status
        )
        snapshot = aggregate(records)
        logger.debug(
            f"Occupancy over {len(records)} approved seated records: "
            f"{snapshot.distinct_counts}"
        )
        return snapshot
