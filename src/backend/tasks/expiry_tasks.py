"""
Expiry tasks for scheduled background jobs.

Wrapper functions that give the scheduler a plain async callable. Each
wrapper:
1. Opens a standalone database session
2. Instantiates the required service
3. Calls the service method
4. Returns a result dict for logging
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from core.database import session_scope
from services.accommodation_service import AccommodationService

logger = logging.getLogger(__name__)


async def expire_accommodations_task(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    as_of: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Move accommodations whose end date has passed to the expired status.

    Wrapper for AccommodationService.expire_records()

    Args:
        session_factory: Session factory to use (default: application factory)
        as_of: Cutoff date (default: today)

    Returns:
        dict: {"expired": <count>, "as_of": <ISO date>}
    """
    as_of = as_of or date.today()
    logger.info(f"Starting accommodation expiry sweep (as_of={as_of.isoformat()})")

    async with session_scope(session_factory) as db:
        service = AccommodationService(settings.accommodations)
        count = await service.expire_records(db, as_of=as_of)

    logger.info(f"Expiry sweep completed: {count} records expired")
    return {"expired": count, "as_of": as_of.isoformat()}
