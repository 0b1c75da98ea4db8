"""
Base schema model for API payloads.

The original front end posts camelCase field names (claimNumber,
associateLogin, isSeated, ...), so every schema aliases its snake_case
attributes to camelCase and accepts either spelling on input.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("associate_home_path")
        'associateHomePath'
    """
    head, *tail = string.split("_")
    return head + "".join(word.capitalize() for word in tail)


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize a stored (naive UTC) or aware datetime as ISO 8601 with 'Z'.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


class HTTPSchemaModel(BaseModel):
    """
    Base model for all HTTP schemas.

    - camelCase aliases for output, both spellings accepted on input
    - construction from ORM rows (from_attributes=True)
    - datetimes rendered in UTC with a 'Z' suffix; plain dates untouched
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)
