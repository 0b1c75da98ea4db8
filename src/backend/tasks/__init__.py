"""
Background task package.

Plain async task functions invoked by the APScheduler jobs in core.scheduler.
"""

from .expiry_tasks import expire_accommodations_task

__all__ = ["expire_accommodations_task"]
