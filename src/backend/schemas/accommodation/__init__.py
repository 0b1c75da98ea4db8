"""Accommodation schemas package."""
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
