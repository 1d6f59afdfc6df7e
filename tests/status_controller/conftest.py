"""Test fixtures for the status controller."""

from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest

from work_status.config import StatusControllerConfig
from work_status.manifest import Work
from work_status.spoke import InMemorySpokeClient
from work_status.status_controller import StatusController
from work_status.store import InMemoryStore
from work_status.task import TaskService, task_service_context


def deployment(name: str, ready: int = 1, replicas: int = 1) -> dict[str, Any]:
    """Return a Deployment object as reported by the spoke cluster."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"replicas": replicas},
        "status": {
            "replicas": replicas,
            "readyReplicas": ready,
            "availableReplicas": ready,
        },
    }


def config_map(name: str) -> dict[str, Any]:
    """Return a ConfigMap manifest."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name, "namespace": "default"},
        "data": {"key": "value"},
    }


def deployment_config(
    name: str | None = None,
    rules: list[dict[str, Any]] | None = None,
    stop_sync_threshold: int | None = None,
) -> dict[str, Any]:
    """Return a manifest config selecting Deployments."""
    identifier: dict[str, Any] = {"group": "apps", "kind": "Deployment"}
    if name:
        identifier["name"] = name
    config: dict[str, Any] = {
        "resourceIdentifier": identifier,
        "feedbackRules": rules if rules is not None else [{"type": "CommonFields"}],
    }
    if stop_sync_threshold is not None:
        config["stopSyncThreshold"] = stop_sync_threshold
    return config


def make_work(
    name: str,
    manifests: list[dict[str, Any]],
    manifest_configs: list[dict[str, Any]] | None = None,
    namespace: str = "cluster1",
) -> Work:
    """Return a Work deploying the manifests."""
    return Work.parse_doc(
        {
            "apiVersion": "multicluster.x-k8s.io/v1alpha1",
            "kind": "Work",
            "metadata": {"name": name, "namespace": namespace, "generation": 1},
            "spec": {
                "workload": {"manifests": manifests},
                "manifestConfigs": manifest_configs or [],
            },
        }
    )


@pytest.fixture(name="task_service", autouse=True)
def task_service_fixture() -> Generator[TaskService, None, None]:
    """Create a task service for testing."""
    with task_service_context() as service:
        yield service


@pytest.fixture
def store() -> InMemoryStore:
    """Create an in-memory store for testing."""
    return InMemoryStore()


@pytest.fixture
def spoke() -> InMemorySpokeClient:
    """Create an in-memory spoke cluster for testing."""
    return InMemorySpokeClient()


@pytest.fixture
def config() -> StatusControllerConfig:
    """Create the controller configuration."""
    return StatusControllerConfig()


@pytest.fixture
async def controller(
    store: InMemoryStore,
    spoke: InMemorySpokeClient,
    config: StatusControllerConfig,
) -> AsyncGenerator[StatusController, None]:
    """Create a StatusController with an in-memory store."""
    controller = StatusController(store, spoke, config)
    yield controller
    await controller.close()
