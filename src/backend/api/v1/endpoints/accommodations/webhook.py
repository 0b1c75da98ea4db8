"""
Inbound webhook endpoint.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from core.dependencies import get_accommodation_service
from core.exceptions import ValidationError
from schemas.accommodation import InboundWebhookPayload, WebhookAck
from services.accommodation_service import AccommodationService
from services.shift_classifier import ShiftClassifier

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=WebhookAck)
async def receive_webhook(
    payload: InboundWebhookPayload,
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
):
    """
    Receive an accommodation update keyed by associate login.

    Updates the associate's latest record, or creates one classified from
    shiftPattern. A claimNumber held by another associate is rejected
    with 409.
    """
    logger.info(f"Webhook received for associate {payload.associate_login}")

    try:
        outcome = await service.upsert_from_webhook(db, payload)
    except ValidationError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return WebhookAck(
        received=True,
        id=outcome.record.id,
        result=outcome.result.value,
        shift_type=ShiftClassifier.effective_bucket(outcome.record).value,
    )
