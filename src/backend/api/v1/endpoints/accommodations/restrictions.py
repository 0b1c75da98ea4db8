"""
Restriction submission endpoint.

Accepts either a JSON body or a multipart form carrying the same fields plus
an optional supporting document under "file".
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from core.database import get_session
from core.dependencies import (get_accommodation_service,
                               get_attachment_storage,
                               get_notification_dispatcher)
from core.exceptions import NotFoundError, StorageError, ValidationError
from schemas.accommodation import (RestrictionSubmission,
                                   RestrictionSubmissionResponse)
from services.accommodation_service import RESUBMISSION, AccommodationService
from services.minio_service import AttachmentStorage
from services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def _read_submission(
    request: Request,
) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """Collect submission fields and the optional upload from the request body."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        upload = form.get("file")
        fields = {
            key: value
            for key, value in form.items()
            if not isinstance(value, UploadFile)
        }
        if not isinstance(upload, UploadFile) or not upload.filename:
            upload = None
        return fields, upload

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Malformed JSON body")

    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    return body, None


@router.post("", response_model=RestrictionSubmissionResponse)
async def submit_restriction(
    request: Request,
    db: AsyncSession = Depends(get_session),
    service: AccommodationService = Depends(get_accommodation_service),
    storage: AttachmentStorage = Depends(get_attachment_storage),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Create or update an accommodation record, then notify the channel.

    - **isNew**: "yes" for a new request, "no" to update existingRecordId
    - **claimNumber**: resubmitting an existing claim updates that record
    - **aaRestrictions**: restriction text, sent in the notification only
    - **file**: optional supporting document (multipart only)
    """
    fields, upload = await _read_submission(request)

    try:
        submission = RestrictionSubmission.model_validate(fields)
    except SchemaValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))

    try:
        is_new = service.validate_submission(submission)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Resubmission target must exist before anything is stored
    if is_new == RESUBMISSION and upload is not None:
        try:
            await service.get_record(db, submission.existing_record_id)
        except NotFoundError:
            raise HTTPException(status_code=404, detail="Existing record not found")

    document_key = None
    if upload is not None:
        if not storage.enabled:
            logger.warning(
                f"Object storage disabled, ignoring uploaded file {upload.filename}"
            )
        else:
            content = await upload.read()
            if len(content) > storage.max_file_size:
                raise HTTPException(status_code=413, detail="Supporting document too large")
            try:
                document_key = await storage.upload_file(
                    upload.filename, content, upload.content_type
                )
            except StorageError as e:
                logger.error(f"Supporting document upload failed: {e}")
                raise HTTPException(
                    status_code=502, detail="Failed to store supporting document"
                )

    try:
        outcome = await service.submit_restriction(db, submission, document_key=document_key)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Existing record not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    document_url = storage.generate_presigned_url(document_key) if document_key else None

    delivered = await service.notify(
        db,
        outcome.record,
        dispatcher,
        restrictions=submission.aa_restrictions,
        document_url=document_url,
    )

    message = (
        "Restrictions saved, notification sent."
        if delivered
        else "Restrictions saved."
    )
    return RestrictionSubmissionResponse(
        message=message,
        id=outcome.record.id,
        result=outcome.result.value,
    )
