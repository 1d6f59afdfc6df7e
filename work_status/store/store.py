"""Store module for the Work records persisted on the hub."""

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Callable
from enum import Enum
from typing import TYPE_CHECKING

from work_status.manifest import NamedResource, Work, WorkStatus


class StoreEvent(str, Enum):
    """Enum for store events."""

    WORK_ADDED = "work_added"
    WORK_UPDATED = "work_updated"
    STATUS_UPDATED = "status_updated"
    WORK_DELETED = "work_deleted"


class Store(ABC):
    """Abstract base class for reading and writing Work records.

    Status writes are conditional on the resource version of the record that
    was read, so concurrent writers never overwrite each other silently.
    """

    @abstractmethod
    async def get_work(self, work_id: NamedResource) -> Work:
        """Return a copy of the Work.

        Raises:
            ObjectNotFoundError: If the Work does not exist.
        """

    @abstractmethod
    async def list_works(self) -> list[Work]:
        """Return a copy of every Work.

        Raises:
            ListError: If the records could not be listed.
        """

    @abstractmethod
    async def update_status(
        self, work_id: NamedResource, resource_version: str, status: WorkStatus
    ) -> Work:
        """Replace the status of the Work if it is still at resource_version.

        The whole status is replaced atomically and the updated Work is returned.

        Raises:
            ConflictError: If the Work changed since resource_version was read.
            ObjectNotFoundError: If the Work does not exist.
        """

    @abstractmethod
    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, Work], None],
    ) -> Callable[[], None]:
        """Register a callback for a store event.

        Returns a callable that can be called to remove the listener.
        """

    @abstractmethod
    async def watch_updated(self) -> AsyncGenerator[NamedResource]:
        """
        Watch for Work records that are added or whose spec changes.

        This is an asynchronous iterator that first yields every existing Work
        then yields the id of each Work as it is added or updated. Status only
        updates are not reported.
        """
        if TYPE_CHECKING:
            yield None  # type: ignore[misc]
