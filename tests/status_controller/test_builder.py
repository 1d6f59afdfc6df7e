"""Tests for the per-manifest status builder."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from work_status.config import StatusControllerConfig
from work_status.exceptions import FetchError
from work_status.manifest import (
    ConditionStatus,
    FeedbackRule,
    FeedbackRuleType,
    FeedbackValue,
    JsonPath,
    Manifest,
)
from work_status.spoke import InMemorySpokeClient, SpokeClient
from work_status.status_controller import StatusBuilder

DEPLOYMENT: dict[str, Any] = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {"name": "web", "namespace": "default"},
    "status": {"replicas": 2, "readyReplicas": 2, "availableReplicas": 1},
}


@pytest.fixture
def spoke() -> InMemorySpokeClient:
    return InMemorySpokeClient([DEPLOYMENT])


@pytest.fixture
def builder(spoke: InMemorySpokeClient) -> StatusBuilder:
    return StatusBuilder(spoke, StatusControllerConfig())


async def test_available(builder: StatusBuilder) -> None:
    """Test a resource that exists on the spoke cluster."""
    observation = await builder.build_available_condition(
        Manifest(raw=DEPLOYMENT), 0, generation=3
    )
    assert observation.available
    assert observation.obj == DEPLOYMENT
    assert observation.error is None
    assert observation.meta is not None
    assert observation.meta.name == "web"
    condition = observation.condition
    assert condition.type == "Available"
    assert condition.status == ConditionStatus.TRUE
    assert condition.reason == "ResourceAvailable"
    assert condition.message == "Resource is available"
    assert condition.observed_generation == 3


async def test_not_found(builder: StatusBuilder) -> None:
    """Test a resource that does not exist on the spoke cluster."""
    raw = {**DEPLOYMENT, "metadata": {"name": "api", "namespace": "default"}}
    observation = await builder.build_available_condition(Manifest(raw=raw), 1)
    assert not observation.available
    assert observation.obj is None
    assert observation.meta is not None
    assert observation.condition.status == ConditionStatus.FALSE
    assert observation.condition.reason == "ResourceNotAvailable"
    assert observation.condition.message == "Resource is not available"


async def test_incomplete_meta(builder: StatusBuilder) -> None:
    """Test a manifest without a name."""
    observation = await builder.build_available_condition(
        Manifest(raw={"apiVersion": "v1", "kind": "ConfigMap"}), 2
    )
    assert observation.meta is None
    assert observation.condition.status == ConditionStatus.UNKNOWN
    assert observation.condition.reason == "IncompletedResourceMeta"
    assert observation.condition.message == "Resource meta is incompleted"


async def test_fetch_failed(
    spoke: InMemorySpokeClient, builder: StatusBuilder
) -> None:
    """Test a fetch that fails for a reason other than not found."""
    meta = Manifest(raw=DEPLOYMENT).resource_meta(0)
    spoke.fail(meta, FetchError("connection refused"))
    observation = await builder.build_available_condition(Manifest(raw=DEPLOYMENT), 0)
    assert observation.condition.status == ConditionStatus.UNKNOWN
    assert observation.condition.reason == "FetchingResourceFailed"
    assert (
        observation.condition.message == "Failed to fetch resource: connection refused"
    )
    assert isinstance(observation.error, FetchError)


async def test_fetch_timeout() -> None:
    """Test a fetch that does not complete within the timeout."""

    async def slow_get(*args: Any) -> dict[str, Any]:
        await asyncio.sleep(10)
        return DEPLOYMENT

    spoke = AsyncMock(spec=SpokeClient)
    spoke.get.side_effect = slow_get
    builder = StatusBuilder(spoke, StatusControllerConfig(fetch_timeout=0.01))
    observation = await builder.build_available_condition(Manifest(raw=DEPLOYMENT), 0)
    assert observation.condition.status == ConditionStatus.UNKNOWN
    assert observation.condition.reason == "FetchingResourceFailed"
    assert observation.condition.message.startswith(
        "Failed to fetch resource: timed out"
    )


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (OSError("connection reset by peer"), "connection reset by peer"),
        (RuntimeError(), "RuntimeError"),
    ],
)
async def test_fetch_unexpected_error(error: Exception, message: str) -> None:
    """Test a client error that is not a FetchError."""
    spoke = AsyncMock(spec=SpokeClient)
    spoke.get.side_effect = error
    builder = StatusBuilder(spoke, StatusControllerConfig())
    observation = await builder.build_available_condition(Manifest(raw=DEPLOYMENT), 0)
    assert observation.condition.status == ConditionStatus.UNKNOWN
    assert observation.condition.reason == "FetchingResourceFailed"
    assert observation.condition.message == f"Failed to fetch resource: {message}"
    assert observation.error is error
    assert observation.meta is not None
    assert observation.obj is None


def test_feedback_synced(builder: StatusBuilder) -> None:
    """Test feedback values are read with the built-in rules."""
    meta = Manifest(raw=DEPLOYMENT).resource_meta(0)
    values, condition = builder.build_feedback(
        meta, DEPLOYMENT, [FeedbackRule(type=FeedbackRuleType.COMMON_FIELDS)], 4
    )
    assert values == [
        FeedbackValue.of("ReadyReplicas", 2),
        FeedbackValue.of("Replicas", 2),
        FeedbackValue.of("AvailableReplicas", 1),
    ]
    assert condition.type == "StatusFeedbackSynced"
    assert condition.status == ConditionStatus.TRUE
    assert condition.reason == "StatusFeedbackSynced"
    assert condition.observed_generation == 4


def test_feedback_no_values(builder: StatusBuilder) -> None:
    """Test rules that select nothing are still a success."""
    meta = Manifest(raw=DEPLOYMENT).resource_meta(0)
    values, condition = builder.build_feedback(
        meta,
        DEPLOYMENT,
        [
            FeedbackRule(
                type=FeedbackRuleType.JSON_PATHS,
                json_paths=[JsonPath(name="Missing", path=".status.missing")],
            )
        ],
    )
    assert values == []
    assert condition.status == ConditionStatus.TRUE
    assert condition.reason == "NoStatusFeedbackSynced"

    values, condition = builder.build_feedback(meta, DEPLOYMENT, [])
    assert values == []
    assert condition.reason == "NoStatusFeedbackSynced"


def test_feedback_failed_keeps_partial_values(builder: StatusBuilder) -> None:
    """Test an error is reported along with the values that were read."""
    meta = Manifest(raw=DEPLOYMENT).resource_meta(0)
    values, condition = builder.build_feedback(
        meta,
        DEPLOYMENT,
        [
            FeedbackRule(
                type=FeedbackRuleType.JSON_PATHS,
                json_paths=[
                    JsonPath(name="Ready", path=".status.readyReplicas"),
                    JsonPath(name="Status", path=".status"),
                ],
            )
        ],
    )
    assert values == [FeedbackValue.of("Ready", 2)]
    assert condition.status == ConditionStatus.FALSE
    assert condition.reason == "StatusFeedbackSyncFailed"
    assert condition.message == (
        "Sync status feedback failed with error "
        "the value for Status is not a single scalar value (found dict)"
    )
