"""
Base CRUD operations as plain functions.

Reusable statements shared by the model-specific CRUD modules. None of these
commit; the calling service owns the transaction.
"""
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


async def find_by_id(
    db: AsyncSession,
    model: Type[ModelType],
    id_value: Any,
) -> Optional[ModelType]:
    """
    Find a single record by ID.

    Returns:
        Model instance or None if not found
    """
    stmt = select(model).where(model.id == id_value)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def find_one(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Dict[str, Any],
    order_by: Optional[Any] = None,
) -> Optional[ModelType]:
    """
    Find the first record matching filters.

    Args:
        db: Database session
        model: SQLModel class
        filters: Dictionary of field:value filters
        order_by: Column to order by before taking the first row

    Returns:
        Model instance or None if not found
    """
    stmt = select(model)

    for field, value in filters.items():
        stmt = stmt.where(getattr(model, field) == value)

    if order_by is not None:
        stmt = stmt.order_by(order_by)

    result = await db.execute(stmt.limit(1))
    return result.scalars().first()


async def find_all(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[Any] = None,
    limit: Optional[int] = None,
) -> List[ModelType]:
    """
    Find all records matching filters. None-valued filters are ignored.

    Returns:
        List of model instances
    """
    stmt = select(model)

    if filters:
        for field, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(model, field) == value)

    if order_by is not None:
        stmt = stmt.order_by(order_by)

    if limit:
        stmt = stmt.limit(limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def delete(
    db: AsyncSession,
    model: Type[ModelType],
    *,
    id_value: Any,
) -> bool:
    """
    Hard-delete a record.

    Returns:
        True if deleted, False if not found
    """
    db_obj = await find_by_id(db, model, id_value)
    if not db_obj:
        return False

    await db.delete(db_obj)
    await db.flush()
    return True
