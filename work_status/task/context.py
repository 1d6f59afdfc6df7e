"""Context management for TaskService."""

import contextlib
import contextvars
from collections.abc import Generator

from .service import TaskService, TaskServiceImpl

__all__: list[str] = []

_task_service_ctx: contextvars.ContextVar[TaskService | None] = contextvars.ContextVar(
    "_task_service_ctx", default=None
)


def get_task_service() -> TaskService:
    """Get the current task service, creating one if none is set."""
    if (instance := _task_service_ctx.get()) is None:
        instance = TaskServiceImpl()
        _task_service_ctx.set(instance)
    return instance


@contextlib.contextmanager
def task_service_context(
    service: TaskService | None = None,
) -> Generator[TaskService, None, None]:
    """Use the TaskService (or a new one) for the duration of the context."""
    token = _task_service_ctx.set(service or TaskServiceImpl())
    try:
        yield _task_service_ctx.get()  # type: ignore[misc]
    finally:
        _task_service_ctx.reset(token)
