"""
API v1 routes.

Accommodation tracking endpoints, mounted by the app factory under the
configured API prefix.
"""

from fastapi import APIRouter

from .endpoints.accommodations import records, restrictions, seat_counts, webhook

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(records.router, prefix="/records", tags=["records"])

api_router.include_router(
    restrictions.router, prefix="/restrictions", tags=["restrictions"]
)

api_router.include_router(
    seat_counts.router, prefix="/seatCounts", tags=["seat-counts"]
)

api_router.include_router(webhook.router, prefix="/webhook", tags=["webhook"])
