"""
Schemas package for API validation and serialization.

Request and response models for the HTTP surface, kept separate from the
SQLModel table definitions.
"""
from .accommodation import (AccommodationPatch, AccommodationRead,
                            InboundWebhookPayload, MessageResponse,
                            RestrictionSubmission,
                            RestrictionSubmissionResponse, SeatCountsResponse,
                            WebhookAck)

__all__ = [
    "AccommodationRead",
    "AccommodationPatch",
    "RestrictionSubmission",
    "RestrictionSubmissionResponse",
    "SeatCountsResponse",
    "InboundWebhookPayload",
    "WebhookAck",
    "MessageResponse",
]
