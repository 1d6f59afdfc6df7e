"""Task tracking module for work-status.

This module provides a task tracking service used by the status controller
to run reconcile passes and its long running loops.
"""

from .context import task_service_context, get_task_service
from .service import TaskService

__all__ = ["get_task_service", "task_service_context", "TaskService"]
