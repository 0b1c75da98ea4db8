"""
Accommodation schemas for API validation and serialization.

Request bodies arrive as JSON or as multipart form fields; form fields are
all strings, so blank values are read as missing.
"""
from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from core.schema_base import HTTPSchemaModel


def _blank_to_none(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            key: (None if isinstance(value, str) and not value.strip() else value)
            for key, value in data.items()
        }
    return data


class AccommodationRead(HTTPSchemaModel):
    """Schema for reading an accommodation record."""
    id: int
    claim_number: Optional[str] = None
    associate_login: str
    associate_name: str
    manager_login: Optional[str] = None
    associate_home_path: Optional[str] = None
    shift_pattern: Optional[str] = None
    shift_type: str
    site: str
    accommodation_role: Optional[str] = None
    is_seated: bool = False
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    requestor_login: Optional[str] = None
    document_key: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AccommodationPatch(HTTPSchemaModel):
    """Schema for a partial update of a record."""
    accommodation_role: Optional[str] = None
    status: Optional[str] = Field(None, min_length=1, max_length=64)
    is_seated: Optional[bool] = None


class RestrictionSubmission(HTTPSchemaModel):
    """
    Create-or-update submission from the restriction form.

    is_new is "yes" for a new request and "no" for a resubmission against
    existing_record_id. aa_restrictions is only forwarded in the notice.
    """
    is_new: str = Field(..., max_length=8)
    existing_record_id: Optional[int] = None
    claim_number: Optional[str] = Field(None, max_length=64)
    associate_login: Optional[str] = Field(None, max_length=64)
    associate_name: Optional[str] = Field(None, max_length=255)
    manager_login: Optional[str] = Field(None, max_length=64)
    associate_home_path: Optional[str] = Field(None, max_length=255)
    shift_pattern: Optional[str] = Field(None, max_length=64)
    accommodation_role: Optional[str] = None
    is_seated: Optional[bool] = None
    requestor_login: Optional[str] = Field(None, max_length=64)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    aa_restrictions: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields_are_missing(cls, data: Any) -> Any:
        return _blank_to_none(data)


class RestrictionSubmissionResponse(HTTPSchemaModel):
    """Schema for the submission response."""
    message: str
    id: int
    result: str


class SeatCountsResponse(HTTPSchemaModel):
    """Occupancy snapshot: weekday grid, per-bucket counts and their total."""
    day_grid: Dict[str, Dict[str, int]]
    distinct_counts: Dict[str, int]
    seated_total: int


class InboundWebhookPayload(HTTPSchemaModel):
    """Inbound callback keyed by associate login."""
    associate_login: str = Field(..., min_length=1, max_length=64)
    associate_name: Optional[str] = Field(None, max_length=255)
    claim_number: Optional[str] = Field(None, max_length=64)
    shift_pattern: Optional[str] = Field(None, max_length=64)
    accommodation_role: Optional[str] = None
    is_seated: Optional[bool] = None
    status: Optional[str] = Field(None, max_length=64)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    requestor_login: Optional[str] = Field(None, max_length=64)

    @model_validator(mode="before")
    @classmethod
    def blank_fields_are_missing(cls, data: Any) -> Any:
        return _blank_to_none(data)


class WebhookAck(HTTPSchemaModel):
    """Acknowledgement returned to the webhook caller."""
    received: bool = True
    id: int
    result: str
    shift_type: str


class MessageResponse(HTTPSchemaModel):
    """Plain message response, with the affected id when there is one."""
    message: str
    id: Optional[int] = None
