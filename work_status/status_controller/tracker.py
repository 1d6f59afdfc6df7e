"""Track consecutive unchanged feedback observations per manifest."""

from dataclasses import dataclass, field
import logging

from work_status.manifest import (
    Condition,
    FeedbackRule,
    FeedbackValue,
    ManifestResourceMeta,
    NamedResource,
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class _Observation:
    """The last feedback observed for a manifest."""

    meta: ManifestResourceMeta
    rules: list[FeedbackRule]
    values: list[FeedbackValue]
    reason: str
    message: str
    unchanged_count: int = 0


@dataclass
class SyncTracker:
    """Decides when a manifest has been unchanged for long enough to stop syncing.

    The count is reset whenever the resource identity, the rules or the
    observed feedback change.
    """

    _observations: dict[tuple[NamedResource, int], _Observation] = field(
        default_factory=dict
    )

    def should_skip(
        self,
        work_id: NamedResource,
        meta: ManifestResourceMeta,
        rules: list[FeedbackRule],
        threshold: int,
    ) -> bool:
        """Return True if extraction for the manifest should be skipped."""
        if threshold <= 0:
            return False
        observation = self._observations.get((work_id, meta.ordinal))
        if observation is None or not self._same_target(observation, meta, rules):
            return False
        return observation.unchanged_count >= threshold

    def observe(
        self,
        work_id: NamedResource,
        meta: ManifestResourceMeta,
        rules: list[FeedbackRule],
        values: list[FeedbackValue],
        condition: Condition,
        count_unchanged: bool = True,
    ) -> None:
        """Record the feedback read for a manifest in this pass.

        Unchanged feedback only advances the count when `count_unchanged` is
        set, while changed feedback always resets it.
        """
        key = (work_id, meta.ordinal)
        previous = self._observations.get(key)
        if (
            previous is not None
            and self._same_target(previous, meta, rules)
            and previous.values == values
            and previous.reason == condition.reason
            and previous.message == condition.message
        ):
            if not count_unchanged:
                return
            previous.unchanged_count += 1
            _LOGGER.debug(
                "Feedback for %s manifest %s unchanged for %d passes",
                work_id,
                meta,
                previous.unchanged_count,
            )
            return
        self._observations[key] = _Observation(
            meta=meta,
            rules=list(rules),
            values=list(values),
            reason=condition.reason,
            message=condition.message,
        )

    def forget(
        self, work_id: NamedResource, keep_ordinals: set[int] | None = None
    ) -> None:
        """Drop observations for a Work, except for the ordinals to keep."""
        for key in list(self._observations):
            if key[0] != work_id:
                continue
            if keep_ordinals is None or key[1] not in keep_ordinals:
                del self._observations[key]

    def prune(self, work_ids: set[NamedResource]) -> None:
        """Drop observations for Works that no longer exist."""
        for key in list(self._observations):
            if key[0] not in work_ids:
                del self._observations[key]

    @staticmethod
    def _same_target(
        observation: _Observation, meta: ManifestResourceMeta, rules: list[FeedbackRule]
    ) -> bool:
        return observation.meta.same_resource(meta) and observation.rules == rules
