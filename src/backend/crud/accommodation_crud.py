"""
CRUD functions for accommodation records.
"""
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import AccommodationRecord, utc_now

from . import base_crud


async def find_by_id(db: AsyncSession, record_id: int) -> Optional[AccommodationRecord]:
    return await base_crud.find_by_id(db, AccommodationRecord, record_id)


async def find_by_claim_number(
    db: AsyncSession, claim_number: str
) -> Optional[AccommodationRecord]:
    return await base_crud.find_one(
        db, AccommodationRecord, filters={"claim_number": claim_number}
    )


async def find_latest_by_associate_login(
    db: AsyncSession, associate_login: str
) -> Optional[AccommodationRecord]:
    """Most recently created record for an associate."""
    return await base_crud.find_one(
        db,
        AccommodationRecord,
        filters={"associate_login": associate_login},
        order_by=AccommodationRecord.id.desc(),
    )


async def list_records(
    db: AsyncSession, *, site: Optional[str] = None
) -> List[AccommodationRecord]:
    """All records, newest first, optionally restricted to one site."""
    return await base_crud.find_all(
        db,
        AccommodationRecord,
        filters={"site": site},
        order_by=AccommodationRecord.id.desc(),
    )


async def list_seated(
    db: AsyncSession, *, status: str
) -> List[AccommodationRecord]:
    """Seated records in the given status (the occupancy population)."""
    return await base_crud.find_all(
        db,
        AccommodationRecord,
        filters={"status": status, "is_seated": True},
    )


async def insert(db: AsyncSession, record: AccommodationRecord) -> AccommodationRecord:
    """
    Add and flush so the unique claim_number constraint is checked now.

    Raises:
        IntegrityError: another row already holds the claim number
    """
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return record


async def delete(db: AsyncSession, record_id: int) -> bool:
    return await base_crud.delete(db, AccommodationRecord, id_value=record_id)


async def mark_expired(
    db: AsyncSession,
    *,
    as_of: date,
    expired_status: str,
    skip_statuses: Iterable[str] = (),
) -> int:
    """
    Bulk-transition records whose end_date is before as_of.

    Returns:
        Number of rows updated
    """
    excluded = {expired_status, *skip_statuses}
    stmt = (
        update(AccommodationRecord)
        .where(AccommodationRecord.end_date.is_not(None))
        .where(AccommodationRecord.end_date < as_of)
        .where(AccommodationRecord.status.not_in(excluded))
        .values(status=expired_status, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount or 0
