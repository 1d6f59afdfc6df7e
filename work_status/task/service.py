"""Task tracking service for the status controller.

Reconcile passes run as tracked tasks so shutdown can wait for them, while
the periodic sync loop and the watcher run as background tasks that are only
ever cancelled.
"""

import asyncio
from abc import ABC, abstractmethod
from functools import partial
import logging
from typing import Any, Coroutine

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []


class TaskService(ABC):
    """Service for tracking asynchronous tasks."""

    @abstractmethod
    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a task that is expected to finish on its own."""

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a long running task that runs until cancelled."""

    @abstractmethod
    async def block_till_done(self) -> None:
        """Wait for the non-background tasks active when called to complete."""


class TaskServiceImpl(TaskService):
    """TaskService backed by sets of asyncio tasks."""

    def __init__(self) -> None:
        """Initialize the task service."""
        self._active_tasks: set[asyncio.Task[Any]] = set()
        self._background_tasks: set[asyncio.Task[Any]] = set()

    def create_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a task that is expected to finish on its own."""
        return self._track(self._active_tasks, coro, name)

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a long running task that runs until cancelled."""
        return self._track(self._background_tasks, coro, name)

    def _track(
        self,
        task_set: set[asyncio.Task[Any]],
        coro: Coroutine[None, None, Any],
        name: str | None,
    ) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        task_set.add(task)
        task.add_done_callback(partial(self._task_done, task_set))
        return task

    def _task_done(
        self, task_set: set[asyncio.Task[Any]], task: asyncio.Task[Any]
    ) -> None:
        """Log the failure of a finished task and stop tracking it."""
        task_set.discard(task)
        if task.cancelled():
            return
        if (err := task.exception()) is not None:
            _LOGGER.error(
                "Task %s failed: %s", task.get_name(), err, exc_info=err
            )

    async def block_till_done(self) -> None:
        """Wait for the non-background tasks active when called to complete."""
        active_tasks = list(self._active_tasks)
        if not active_tasks:
            await asyncio.sleep(0)
            return
        _LOGGER.debug("Waiting for %d tasks to complete", len(active_tasks))
        await asyncio.gather(*active_tasks, return_exceptions=True)
