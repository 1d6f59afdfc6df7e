"""Access to the live objects on a spoke cluster.

The controller only needs to fetch the current state of a deployed resource
by its coordinates. Mapping a kind to a REST resource and the API calls
themselves are the concern of the client implementation.
"""

from abc import ABC, abstractmethod
import copy
import logging
from typing import Any

from .exceptions import FetchError, InputException, ResourceNotFoundError
from .manifest import GroupVersionKind, ManifestResourceMeta, parse_api_version

__all__ = [
    "SpokeClient",
    "InMemorySpokeClient",
]

_LOGGER = logging.getLogger(__name__)

ObjectKey = tuple[GroupVersionKind, str, str]


class SpokeClient(ABC):
    """Fetches live objects from the spoke cluster."""

    @abstractmethod
    async def get(self, meta: ManifestResourceMeta) -> dict[str, Any]:
        """Return the live object for the resource.

        Raises:
            ResourceNotFoundError: If the resource does not exist.
            FetchError: If the resource could not be fetched for any other reason.
        """


def _object_key(obj: dict[str, Any]) -> ObjectKey:
    if not (api_version := obj.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {obj}")
    if not (kind := obj.get("kind")):
        raise InputException(f"Invalid object missing kind: {obj}")
    metadata = obj.get("metadata") or {}
    if not (name := metadata.get("name")):
        raise InputException(f"Invalid object missing metadata.name: {obj}")
    group, version = parse_api_version(api_version)
    return GroupVersionKind(group, version, kind), metadata.get("namespace", ""), name


class InMemorySpokeClient(SpokeClient):
    """A spoke cluster backed by a dictionary of objects."""

    def __init__(self, objects: list[dict[str, Any]] | None = None) -> None:
        """Initialize InMemorySpokeClient."""
        self._objects: dict[ObjectKey, dict[str, Any]] = {}
        self._errors: dict[ObjectKey, FetchError] = {}
        for obj in objects or ():
            self.apply(obj)

    def apply(self, obj: dict[str, Any]) -> None:
        """Create or replace an object."""
        key = _object_key(obj)
        _LOGGER.debug("Applying spoke object %s", key)
        self._objects[key] = copy.deepcopy(obj)

    def delete(self, obj: dict[str, Any]) -> None:
        """Remove an object if present."""
        self._objects.pop(_object_key(obj), None)

    def fail(self, meta: ManifestResourceMeta, error: FetchError) -> None:
        """Make fetches of the resource fail with the error."""
        self._errors[(meta.gvk, meta.namespace, meta.name)] = error

    async def get(self, meta: ManifestResourceMeta) -> dict[str, Any]:
        """Return the live object for the resource."""
        key = (meta.gvk, meta.namespace, meta.name)
        if (error := self._errors.get(key)) is not None:
            raise error
        if (obj := self._objects.get(key)) is None:
            raise ResourceNotFoundError(f"{meta.kind} {meta.name} not found")
        return copy.deepcopy(obj)
