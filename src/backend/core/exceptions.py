"""
Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; services never raise
HTTPException themselves.
"""


class NotFoundError(Exception):
    """Exception raised when a resource is not found."""

    pass


class ValidationError(ValueError):
    """Submission failed a business validation rule."""

    pass


class StorageError(Exception):
    """Supporting document could not be written to object storage."""

    pass
