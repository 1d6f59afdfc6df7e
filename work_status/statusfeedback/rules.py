"""Rules selecting which status paths are extracted for a resource."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
import logging
from types import MappingProxyType

from work_status.exceptions import ResolutionError
from work_status.manifest import (
    FeedbackRule,
    FeedbackRuleType,
    GroupVersionKind,
    JsonPath,
)

__all__ = [
    "CommonFieldsRuleResolver",
    "DefaultCommonFieldsRuleResolver",
    "DEFAULT_COMMON_FIELDS_RULES",
    "resolve_paths",
]

_LOGGER = logging.getLogger(__name__)


DEPLOYMENT_GVK = GroupVersionKind("apps", "v1", "Deployment")
STATEFUL_SET_GVK = GroupVersionKind("apps", "v1", "StatefulSet")
DAEMON_SET_GVK = GroupVersionKind("apps", "v1", "DaemonSet")
JOB_GVK = GroupVersionKind("batch", "v1", "Job")
POD_GVK = GroupVersionKind("", "v1", "Pod")

_DEPLOYMENT_RULE = (
    JsonPath(name="ReadyReplicas", path=".status.readyReplicas"),
    JsonPath(name="Replicas", path=".status.replicas"),
    JsonPath(name="AvailableReplicas", path=".status.availableReplicas"),
)

_STATEFUL_SET_RULE = (
    JsonPath(name="ReadyReplicas", path=".status.readyReplicas"),
    JsonPath(name="Replicas", path=".status.replicas"),
    JsonPath(name="CurrentReplicas", path=".status.currentReplicas"),
)

_DAEMON_SET_RULE = (
    JsonPath(name="NumberReady", path=".status.numberReady"),
    JsonPath(name="DesiredNumberScheduled", path=".status.desiredNumberScheduled"),
    JsonPath(name="NumberAvailable", path=".status.numberAvailable"),
)

_JOB_RULE = (
    JsonPath(
        name="JobComplete", path='.status.conditions[?(@.type=="Complete")].status'
    ),
    JsonPath(name="JobSucceeded", path=".status.succeeded"),
)

_POD_RULE = (
    JsonPath(name="PodReady", path='.status.conditions[?(@.type=="Ready")].status'),
    JsonPath(name="PodPhase", path=".status.phase"),
)

DEFAULT_COMMON_FIELDS_RULES: Mapping[GroupVersionKind, tuple[JsonPath, ...]] = (
    MappingProxyType(
        {
            DEPLOYMENT_GVK: _DEPLOYMENT_RULE,
            STATEFUL_SET_GVK: _STATEFUL_SET_RULE,
            DAEMON_SET_GVK: _DAEMON_SET_RULE,
            JOB_GVK: _JOB_RULE,
            POD_GVK: _POD_RULE,
        }
    )
)


class CommonFieldsRuleResolver(ABC):
    """Looks up the built-in status paths for a resource type."""

    @abstractmethod
    def get_paths_by_kind(self, gvk: GroupVersionKind) -> list[JsonPath]:
        """Return the built-in paths for the type, empty if there are none."""


class DefaultCommonFieldsRuleResolver(CommonFieldsRuleResolver):
    """Resolver backed by a static table of built-in rules."""

    def __init__(
        self,
        rules: Mapping[
            GroupVersionKind, tuple[JsonPath, ...]
        ] = DEFAULT_COMMON_FIELDS_RULES,
    ) -> None:
        """Initialize DefaultCommonFieldsRuleResolver."""
        self._rules = rules

    def get_paths_by_kind(self, gvk: GroupVersionKind) -> list[JsonPath]:
        """Return the built-in paths for the type, empty if there are none."""
        return list(self._rules.get(gvk, ()))

    def supported_kinds(self) -> list[GroupVersionKind]:
        """Return the types that have built-in rules."""
        return sorted(self._rules)


def resolve_paths(
    gvk: GroupVersionKind,
    rule: FeedbackRule,
    resolver: CommonFieldsRuleResolver,
) -> tuple[list[JsonPath], list[Exception]]:
    """Return the ordered paths to extract for a resource and any errors.

    For CommonFields rules an unknown type is an error and no paths are
    returned. For JSONPaths rules, paths declaring a version that differs from
    the resource version are skipped and each records an error.
    """
    if rule.type == FeedbackRuleType.COMMON_FIELDS:
        paths = resolver.get_paths_by_kind(gvk)
        if not paths:
            return [], [
                ResolutionError(
                    f"cannot find the CommonFields statuses for resource with gvk {gvk}"
                )
            ]
        return paths, []

    errors: list[Exception] = []
    paths = []
    for path in rule.json_paths:
        if path.version and path.version != gvk.version:
            _LOGGER.warning(
                "Skipping path %s for %s: version %s does not match",
                path.name,
                gvk,
                path.version,
            )
            errors.append(
                ResolutionError(
                    f"version set in the path {path.name} is not matched "
                    "for the related resource"
                )
            )
            continue
        paths.append(path)
    return paths, errors
