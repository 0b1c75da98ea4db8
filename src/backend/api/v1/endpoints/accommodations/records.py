"""
Accommodation record endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import get_accommodation_service
from core.exceptions import NotFoundError
from db.enums import ShiftBucket
from schemas.accommodation import (AccommodationPatch, AccommodationRead,
                                   MessageResponse)
from services.accommodation_service import AccommodationService

router = APIRouter()


@router.get("", response_model=List[AccommodationRead])
async def list_records(
    site: Optional[str] = Query(None, description="Facility code"),
    shift_type: Optional[ShiftBucket] = Query(
        None, alias="shiftType", description="Shift bucket (FHD, FHN, BHD, BHN, FLEX, unknown)"
    ),
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
):
    """
    List all records, newest first.

    - **site**: Only records for this facility
    - **shiftType**: Only records in this shift bucket
    """
    records = await service.list_records(db, site=site, shift_type=shift_type)
    return [service.to_read(record) for record in records]


@router.get("/{record_id}", response_model=AccommodationRead)
async def get_record(
    record_id: int,
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
):
    """Get a record by ID."""
    try:
        record = await service.get_record(db, record_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Record not found")

    return service.to_read(record)


@router.patch("/{record_id}", response_model=MessageResponse)
async def patch_record(
    record_id: int,
    patch: AccommodationPatch,
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
):
    """
    Update role, status or seated flag of a record.

    - **accommodationRole**: Recommended role
    - **status**: Lifecycle status, e.g. Approved
    - **isSeated**: Whether the role is seated
    """
    try:
        record = await service.patch_record(db, record_id, patch)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Record not found")

    return MessageResponse(message="Record updated.", id=record.id)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_record(
    record_id: int,
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
):
    """Delete a record."""
    try:
        await service.delete_record(db, record_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Record not found")

    return MessageResponse(message="Record deleted.", id=record_id)
