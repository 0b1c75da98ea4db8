"""
CRUD layer for database operations.

Data access logic isolated from business logic, written as plain functions
taking the session as their first argument.

Pattern:
    await accommodation_crud.find_by_id(db, record_id)
"""

from . import base_crud
from . import accommodation_crud

__all__ = [
    "base_crud",
    "accommodation_crud",
]
