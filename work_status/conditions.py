"""Helpers for working with lists of status conditions.

A condition list holds at most one condition per type. Setting a condition
replaces any existing condition of the same type.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from .manifest import Condition

__all__ = [
    "CONDITION_AVAILABLE",
    "CONDITION_FEEDBACK_SYNCED",
    "find_condition",
    "set_status_condition",
    "remove_status_condition",
]

CONDITION_AVAILABLE = "Available"
CONDITION_FEEDBACK_SYNCED = "StatusFeedbackSynced"


def now_timestamp() -> str:
    """Return the current time formatted like a kubernetes timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def find_condition(
    conditions: list[Condition], condition_type: str
) -> Condition | None:
    """Return the condition with the specified type."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def set_status_condition(
    conditions: list[Condition],
    new_condition: Condition,
    now: Callable[[], str] = now_timestamp,
) -> None:
    """Set the condition in the list, replacing any condition of the same type.

    The last transition time only moves when the status changes, so setting an
    identical condition leaves the list unchanged.
    """
    existing = find_condition(conditions, new_condition.type)
    if existing is None:
        conditions.append(
            Condition(
                type=new_condition.type,
                status=new_condition.status,
                reason=new_condition.reason,
                message=new_condition.message,
                observed_generation=new_condition.observed_generation,
                last_transition_time=new_condition.last_transition_time or now(),
            )
        )
        return

    if existing.status != new_condition.status:
        existing.status = new_condition.status
        existing.last_transition_time = new_condition.last_transition_time or now()
    existing.reason = new_condition.reason
    existing.message = new_condition.message
    existing.observed_generation = new_condition.observed_generation


def remove_status_condition(conditions: list[Condition], condition_type: str) -> None:
    """Remove the condition with the specified type if present."""
    conditions[:] = [c for c in conditions if c.type != condition_type]
