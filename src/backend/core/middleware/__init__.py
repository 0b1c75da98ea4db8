"""
Middleware classes for FastAPI application.
"""

from .correlation import CorrelationIdMiddleware

__all__ = [
    "CorrelationIdMiddleware",
]
