"""Tests for the in-memory spoke client."""

import pytest

from work_status.exceptions import FetchError, InputException, ResourceNotFoundError
from work_status.manifest import Manifest
from work_status.spoke import InMemorySpokeClient

POD = {
    "apiVersion": "v1",
    "kind": "Pod",
    "metadata": {"name": "web-1", "namespace": "default"},
    "status": {"phase": "Running"},
}


async def test_get() -> None:
    """Test fetching an object by its coordinates."""
    spoke = InMemorySpokeClient([POD])
    meta = Manifest(raw=POD).resource_meta(0)
    obj = await spoke.get(meta)
    assert obj == POD

    # Fetches are copies
    obj["status"]["phase"] = "Failed"
    assert (await spoke.get(meta))["status"]["phase"] == "Running"


async def test_get_not_found() -> None:
    """Test fetching an object that does not exist."""
    spoke = InMemorySpokeClient()
    meta = Manifest(raw=POD).resource_meta(0)
    with pytest.raises(ResourceNotFoundError, match="Pod web-1 not found"):
        await spoke.get(meta)

    spoke.apply(POD)
    await spoke.get(meta)
    spoke.delete(POD)
    with pytest.raises(ResourceNotFoundError):
        await spoke.get(meta)


async def test_get_other_namespace() -> None:
    """Test objects are keyed by namespace."""
    spoke = InMemorySpokeClient([POD])
    other = {**POD, "metadata": {"name": "web-1", "namespace": "other"}}
    with pytest.raises(ResourceNotFoundError):
        await spoke.get(Manifest(raw=other).resource_meta(0))


async def test_fail() -> None:
    """Test configuring a fetch failure."""
    spoke = InMemorySpokeClient([POD])
    meta = Manifest(raw=POD).resource_meta(0)
    spoke.fail(meta, FetchError("forbidden"))
    with pytest.raises(FetchError, match="forbidden"):
        await spoke.get(meta)


def test_apply_invalid() -> None:
    """Test applying an object without coordinates."""
    spoke = InMemorySpokeClient()
    with pytest.raises(InputException, match="missing kind"):
        spoke.apply({"apiVersion": "v1", "metadata": {"name": "a"}})
