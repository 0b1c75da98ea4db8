"""
Centralized error handling decorators for database operations.

Service methods receive an AsyncSession positionally or by keyword; the
decorators locate it, commit or roll back around the call, and log
SQLAlchemy failures with a classification before re-raising them.
"""
import functools
import logging
import traceback
from typing import Any, Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession


logger = logging.getLogger(__name__)


class DatabaseErrorHandler:
    """Centralized database error handling utilities."""

    DATABASE_EXCEPTIONS = (SQLAlchemyError, ConnectionError)

    @staticmethod
    def handle_database_error(
        exc: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> tuple[bool, str]:
        """
        Classify and log a database error.

        Returns:
            Tuple of (is_recoverable, error_message)
        """
        context_str = f" | Context: {context}" if context else ""

        if isinstance(exc, IntegrityError):
            error_msg = f"Database integrity error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return False, error_msg

        elif isinstance(exc, (ConnectionError, DisconnectionError)):
            error_msg = f"Database connection error during {operation}: {exc}{context_str}"
            logger.error(error_msg)
            return True, error_msg

        elif isinstance(exc, TimeoutError):
            error_msg = f"Database timeout during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return True, error_msg

        elif isinstance(exc, OperationalError):
            error_msg = f"Database operational error during {operation}: {exc}{context_str}"
            logger.error(error_msg)
            return True, error_msg

        elif isinstance(exc, StatementError):
            error_msg = f"Database statement error during {operation}: {exc}{context_str}"
            logger.warning(error_msg)
            return False, error_msg

        else:
            error_msg = (
                f"Unexpected database error during {operation}: "
                f"{type(exc).__name__}: {exc}{context_str}"
            )
            logger.error(f"{error_msg}\nTraceback: {traceback.format_exc()}")
            return False, error_msg


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def handle_database_exceptions(operation_name: Optional[str] = None) -> Callable:
    """
    Wrap an async database operation: log SQLAlchemy errors with their
    classification, then re-raise. Non-database exceptions (domain errors)
    pass through untouched.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            try:
                return await func(*args, **kwargs)
            except DatabaseErrorHandler.DATABASE_EXCEPTIONS as exc:
                DatabaseErrorHandler.handle_database_error(
                    exc,
                    operation,
                    {"function": func.__name__, "kwargs_keys": list(kwargs)},
                )
                raise

        return async_wrapper

    return decorator


def database_transaction(operation_name: Optional[str] = None) -> Callable:
    """
    Commit the session found in the call's arguments on success and roll it
    back on any error.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            db_session = _find_session(args, kwargs)

            if db_session is None:
                logger.warning(f"No AsyncSession found for transaction operation {operation}")
                return await func(*args, **kwargs)

            try:
                result = await func(*args, **kwargs)
                await db_session.commit()
                logger.debug(f"Transaction committed for {operation}")
                return result
            except Exception:
                try:
                    await db_session.rollback()
                    logger.debug(f"Transaction rolled back for {operation} due to error")
                except SQLAlchemyError as rollback_exc:
                    logger.error(f"Failed to rollback transaction for {operation}: {rollback_exc}")
                raise

        return async_wrapper

    return decorator


def log_database_operation(operation: str, level: str = "debug") -> Callable:
    """Log start, completion and failure of a database operation."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            logger_method(f"Starting {operation} via {func.__name__}")
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                logger_method(f"Failed {operation} via {func.__name__}: {exc}")
                raise
            logger_method(f"Completed {operation} via {func.__name__}")
            return result

        return async_wrapper

    return decorator


def critical_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Error-logging decorator for reads that must surface failures.

    Usable as @critical_database_operation, @critical_database_operation()
    or @critical_database_operation("name").
    """
    if func is None:
        return handle_database_exceptions(operation_name=operation_name)
    if callable(func):
        return handle_database_exceptions(operation_name=operation_name)(func)
    return handle_database_exceptions(operation_name=func)


def transactional_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Combined decorator for writes: transaction handling plus error logging.

    Usable as @transactional_database_operation,
    @transactional_database_operation() or @transactional_database_operation("name").
    """
    def decorator(f: Callable, name: Optional[str]) -> Callable:
        transaction_decorated = database_transaction(operation_name=name)(f)
        return handle_database_exceptions(operation_name=name)(transaction_decorated)

    if func is None:
        return lambda f: decorator(f, operation_name)
    if callable(func):
        return decorator(func, operation_name)
    return lambda f: decorator(f, func)
