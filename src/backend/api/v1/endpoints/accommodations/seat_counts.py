"""
Seat count endpoint.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import get_occupancy_service
from schemas.accommodation import SeatCountsResponse
from services.occupancy_service import OccupancyService

router = APIRouter()


@router.get("", response_model=SeatCountsResponse)
async def get_seat_counts(
    db: AsyncSession = Depends(get_session),
    service: OccupancyService = Depends(get_occupancy_service),
):
    """
    Approved seated accommodations by weekday and shift bucket.

    - **dayGrid**: weekday -> bucket -> count of records working that day
    - **distinctCounts**: bucket -> count of records
    - **seatedTotal**: sum of distinctCounts
    """
    snapshot = await service.snapshot(db)
    return SeatCountsResponse(
        day_grid=snapshot.day_grid,
        distinct_counts=snapshot.distinct_counts,
        seated_total=snapshot.seated_total,
    )
