"""Roll the Available conditions of each manifest up into one for the Work."""

from work_status.conditions import CONDITION_AVAILABLE, find_condition
from work_status.manifest import Condition, ConditionStatus, ManifestCondition

REASON_RESOURCES_AVAILABLE = "ResourcesAvailable"
REASON_RESOURCES_NOT_AVAILABLE = "ResourcesNotAvailable"
REASON_RESOURCES_STATUS_UNKNOWN = "ResourcesStatusUnknown"


def aggregate_manifest_conditions(
    generation: int, manifests: list[ManifestCondition]
) -> Condition:
    """Return the Available condition for a Work.

    Any unavailable manifest makes the Work unavailable, otherwise any unknown
    manifest makes it unknown. A Work with no available manifest at all is
    unknown, and only when every manifest is available is the Work available.
    """
    available, unavailable, unknown = 0, 0, 0
    for manifest in manifests:
        condition = find_condition(manifest.conditions, CONDITION_AVAILABLE)
        if condition is None:
            continue
        if condition.status == ConditionStatus.TRUE:
            available += 1
        elif condition.status == ConditionStatus.FALSE:
            unavailable += 1
        else:
            unknown += 1

    total = len(manifests)
    if unavailable > 0:
        return Condition(
            type=CONDITION_AVAILABLE,
            status=ConditionStatus.FALSE,
            reason=REASON_RESOURCES_NOT_AVAILABLE,
            message=f"{unavailable} of {total} resources are not available",
            observed_generation=generation,
        )
    if unknown > 0:
        return Condition(
            type=CONDITION_AVAILABLE,
            status=ConditionStatus.UNKNOWN,
            reason=REASON_RESOURCES_STATUS_UNKNOWN,
            message=f"{unknown} of {total} resources have unknown status",
            observed_generation=generation,
        )
    if available == 0:
        return Condition(
            type=CONDITION_AVAILABLE,
            status=ConditionStatus.UNKNOWN,
            reason=REASON_RESOURCES_STATUS_UNKNOWN,
            message="cannot get any available resource",
            observed_generation=generation,
        )
    return Condition(
        type=CONDITION_AVAILABLE,
        status=ConditionStatus.TRUE,
        reason=REASON_RESOURCES_AVAILABLE,
        message="All resources are available",
        observed_generation=generation,
    )
