"""
Database models.

One table: accommodations, a row per accommodation request ("restriction")
for an associate.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, text
from sqlmodel import Field, SQLModel

from db.enums import ShiftBucket


def utc_now() -> datetime:
    """
    Current time in UTC (timezone-naive) for database storage.

    The API layer appends the 'Z' suffix when serializing.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


class AccommodationRecord(TableModel, table=True):
    """Accommodation request for an associate, with its classified shift."""

    __tablename__ = "accommodations"

    id: Optional[int] = Field(default=None, primary_key=True)
    claim_number: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True, unique=True),
        description="External claim identifier, natural key for resubmissions",
    )
    associate_login: str = Field(
        max_length=64,
        sa_column=Column(String(64), nullable=False),
        description="Associate login",
    )
    associate_name: str = Field(
        max_length=255,
        sa_column=Column(String(255), nullable=False),
        description="Associate display name",
    )
    manager_login: Optional[str] = Field(default=None, max_length=64)
    associate_home_path: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Associate's normal work area",
    )
    shift_pattern: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Raw shift code as entered, e.g. DA5-1830",
    )
    shift_type: str = Field(
        default=ShiftBucket.UNKNOWN.value,
        sa_column=Column(
            String(16),
            nullable=False,
            server_default=ShiftBucket.UNKNOWN.value,
        ),
        description="Bucket classified from shift_pattern at creation time",
    )
    site: str = Field(
        sa_column=Column(String(16), nullable=False),
        description="Facility code",
    )
    accommodation_role: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Recommended role or work assignment",
    )
    is_seated: bool = Field(
        default=False,
        sa_column=Column(Boolean, default=False, nullable=False),
        description="Whether the role occupies a seated position",
    )
    status: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Lifecycle status (Pending, Approved, Expired, ...)",
    )
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    requestor_login: Optional[str] = Field(default=None, max_length=64)
    document_key: Optional[str] = Field(
        default=None,
        max_length=512,
        description="Object storage key of the supporting document",
    )
    # Naive UTC; an explicit DateTime column keeps the type timezone-free
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=False),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=False),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
            onupdate=utc_now,
        ),
        description="Last update timestamp",
    )

    __table_args__ = (
        Index("ix_accommodations_associate_login", "associate_login"),
        Index("ix_accommodations_status_is_seated", "status", "is_seated"),
        Index("ix_accommodations_end_date", "end_date"),
    )
