"""Module for in memory Work store."""

import asyncio
from collections import defaultdict
from collections.abc import AsyncGenerator, Callable
import copy
import itertools
import logging
from typing import Any, DefaultDict

from work_status.exceptions import ConflictError, ObjectNotFoundError
from work_status.manifest import NamedResource, Work, WorkStatus

from .store import Store, StoreEvent

_LOGGER = logging.getLogger(__name__)


class InMemoryStore(Store):
    """In-memory implementation of the Store interface.

    Every read returns a deep copy so callers may mutate the result freely,
    and every write bumps the resource version of the record.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryStore."""
        self._works: dict[NamedResource, Work] = {}
        self._versions = itertools.count(1)
        self._listeners: DefaultDict[StoreEvent, list[Callable[..., None]]] = (
            defaultdict(list)
        )

    def _next_version(self) -> str:
        return str(next(self._versions))

    def add_work(self, work: Work) -> Work:
        """Create or replace a Work, keeping the stored status on replace.

        Replacing the spec of a Work bumps its generation. Adding a Work with
        an unchanged spec is a no-op.

        Returns a copy of the stored Work with its new resource version.
        """
        work_id = work.work_id
        stored = copy.deepcopy(work)
        if (existing := self._works.get(work_id)) is not None:
            if existing.spec == stored.spec:
                _LOGGER.debug("Work %s already exists in store, skipping", work_id)
                return copy.deepcopy(existing)
            _LOGGER.debug("Updating existing Work %s in store", work_id)
            stored.status = existing.status
            stored.generation = existing.generation + 1
            event = StoreEvent.WORK_UPDATED
        else:
            _LOGGER.debug("Adding Work %s to store", work_id)
            event = StoreEvent.WORK_ADDED
        stored.resource_version = self._next_version()
        self._works[work_id] = stored
        self._fire_event(event, work_id, copy.deepcopy(stored))
        return copy.deepcopy(stored)

    def delete_work(self, work_id: NamedResource) -> None:
        """Remove a Work from the store."""
        if (existing := self._works.pop(work_id, None)) is None:
            raise ObjectNotFoundError(f"Work {work_id.namespaced_name} not found")
        self._fire_event(StoreEvent.WORK_DELETED, work_id, existing)

    async def get_work(self, work_id: NamedResource) -> Work:
        """Return a copy of the Work."""
        if (work := self._works.get(work_id)) is None:
            raise ObjectNotFoundError(f"Work {work_id.namespaced_name} not found")
        return copy.deepcopy(work)

    async def list_works(self) -> list[Work]:
        """Return a copy of every Work."""
        return [copy.deepcopy(work) for work in self._works.values()]

    async def update_status(
        self, work_id: NamedResource, resource_version: str, status: WorkStatus
    ) -> Work:
        """Replace the status of the Work if it is still at resource_version."""
        if (existing := self._works.get(work_id)) is None:
            raise ObjectNotFoundError(f"Work {work_id.namespaced_name} not found")
        if existing.resource_version != resource_version:
            raise ConflictError(
                work_id.namespaced_name, resource_version, existing.resource_version
            )
        updated = copy.deepcopy(existing)
        updated.status = copy.deepcopy(status)
        updated.resource_version = self._next_version()
        self._works[work_id] = updated
        _LOGGER.debug(
            "Updated status for Work %s to version %s",
            work_id.namespaced_name,
            updated.resource_version,
        )
        self._fire_event(StoreEvent.STATUS_UPDATED, work_id, copy.deepcopy(updated))
        return copy.deepcopy(updated)

    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, Work], None],
    ) -> Callable[[], None]:
        """Register a callback for a store event."""

        def remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        self._listeners[event].append(callback)
        return remove

    def _fire_event(self, event: StoreEvent, *args: Any) -> None:
        for cb in list(self._listeners[event]):  # Iterate over a copy for safe removal
            try:
                cb(*args)
            except Exception:
                _LOGGER.exception("Store listener callback failed for event %s", event)

    async def watch_updated(self) -> AsyncGenerator[NamedResource]:
        """
        Watch for Work records that are added or whose spec changes.

        Yields the id of every existing Work first, then the id of each Work
        as it is added or updated.
        """
        queue: asyncio.Queue[NamedResource] = asyncio.Queue()

        def callback(work_id: NamedResource, work: Work) -> None:
            queue.put_nowait(work_id)

        remove_added = self.add_listener(StoreEvent.WORK_ADDED, callback)
        remove_updated = self.add_listener(StoreEvent.WORK_UPDATED, callback)

        try:
            for work_id in list(self._works):
                yield work_id
            while True:
                work_id = await queue.get()
                yield work_id
                queue.task_done()
        except asyncio.CancelledError:
            _LOGGER.debug("watch_updated cancelled.")
            raise
        finally:
            _LOGGER.debug("Cleaning up listeners for watch_updated")
            remove_added()
            remove_updated()
