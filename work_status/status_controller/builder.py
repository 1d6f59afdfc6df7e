"""Build the per-manifest conditions and feedback values of a Work."""

import asyncio
from dataclasses import dataclass
import logging
from typing import Any

from work_status.conditions import CONDITION_AVAILABLE, CONDITION_FEEDBACK_SYNCED
from work_status.config import StatusControllerConfig
from work_status.exceptions import (
    FetchError,
    ResourceMetaError,
    ResourceNotFoundError,
)
from work_status.manifest import (
    Condition,
    ConditionStatus,
    FeedbackRule,
    FeedbackValue,
    Manifest,
    ManifestResourceMeta,
)
from work_status.spoke import SpokeClient
from work_status.statusfeedback import StatusReader

_LOGGER = logging.getLogger(__name__)

REASON_RESOURCE_AVAILABLE = "ResourceAvailable"
REASON_RESOURCE_NOT_AVAILABLE = "ResourceNotAvailable"
REASON_FETCHING_RESOURCE_FAILED = "FetchingResourceFailed"
REASON_INCOMPLETE_RESOURCE_META = "IncompletedResourceMeta"

REASON_FEEDBACK_SYNCED = "StatusFeedbackSynced"
REASON_NO_FEEDBACK_SYNCED = "NoStatusFeedbackSynced"
REASON_FEEDBACK_SYNC_FAILED = "StatusFeedbackSyncFailed"


@dataclass
class ResourceObservation:
    """The result of looking up the live object for one manifest."""

    condition: Condition
    """The Available condition for the manifest."""

    meta: ManifestResourceMeta | None = None
    """The resolved coordinates, None when they are incomplete."""

    obj: dict[str, Any] | None = None
    """The live object when it was fetched."""

    error: Exception | None = None
    """The error that prevented fetching the object."""

    @property
    def available(self) -> bool:
        return self.condition.status == ConditionStatus.TRUE


class StatusBuilder:
    """Observes one manifest on the spoke cluster and reads its feedback values."""

    def __init__(
        self,
        spoke: SpokeClient,
        config: StatusControllerConfig,
        reader: StatusReader | None = None,
    ) -> None:
        """Initialize StatusBuilder."""
        self._spoke = spoke
        self._config = config
        self._reader = reader or StatusReader()

    async def build_available_condition(
        self, manifest: Manifest, ordinal: int, generation: int = 0
    ) -> ResourceObservation:
        """Fetch the live object for the manifest and build its Available condition.

        The fetch error, if any, is returned in the observation so the caller
        can skip reading feedback values for the manifest.
        """
        try:
            meta = manifest.resource_meta(ordinal)
        except ResourceMetaError as err:
            _LOGGER.debug("Manifest %d has incomplete resource meta: %s", ordinal, err)
            return ResourceObservation(
                condition=Condition(
                    type=CONDITION_AVAILABLE,
                    status=ConditionStatus.UNKNOWN,
                    reason=REASON_INCOMPLETE_RESOURCE_META,
                    message="Resource meta is incompleted",
                    observed_generation=generation,
                ),
                error=err,
            )

        try:
            async with asyncio.timeout(self._config.fetch_timeout):
                obj = await self._spoke.get(meta)
        except ResourceNotFoundError as err:
            return ResourceObservation(
                condition=Condition(
                    type=CONDITION_AVAILABLE,
                    status=ConditionStatus.FALSE,
                    reason=REASON_RESOURCE_NOT_AVAILABLE,
                    message="Resource is not available",
                    observed_generation=generation,
                ),
                meta=meta,
                error=err,
            )
        except (FetchError, TimeoutError) as err:
            _LOGGER.warning("Failed to fetch resource %s: %s", meta, err)
            return self._fetch_failed(meta, err, generation)
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.exception("Unexpected error fetching resource %s: %s", meta, err)
            return self._fetch_failed(meta, err, generation)

        return ResourceObservation(
            condition=Condition(
                type=CONDITION_AVAILABLE,
                status=ConditionStatus.TRUE,
                reason=REASON_RESOURCE_AVAILABLE,
                message="Resource is available",
                observed_generation=generation,
            ),
            meta=meta,
            obj=obj,
        )

    def _fetch_failed(
        self, meta: ManifestResourceMeta, err: Exception, generation: int
    ) -> ResourceObservation:
        if isinstance(err, TimeoutError):
            detail = str(err) or f"timed out after {self._config.fetch_timeout}s"
        else:
            detail = str(err) or type(err).__name__
        return ResourceObservation(
            condition=Condition(
                type=CONDITION_AVAILABLE,
                status=ConditionStatus.UNKNOWN,
                reason=REASON_FETCHING_RESOURCE_FAILED,
                message=f"Failed to fetch resource: {detail}",
                observed_generation=generation,
            ),
            meta=meta,
            error=err,
        )

    def build_feedback(
        self,
        meta: ManifestResourceMeta,
        obj: dict[str, Any],
        rules: list[FeedbackRule],
        generation: int = 0,
    ) -> tuple[list[FeedbackValue], Condition]:
        """Read the feedback values of a live object and build the sync condition.

        Values read before an error are kept. Finding no values is a success.
        """
        values, err = self._reader.get_values(meta.gvk, obj, rules)
        if err is not None:
            _LOGGER.info("Status feedback for %s failed: %s", meta, err)
            return values, Condition(
                type=CONDITION_FEEDBACK_SYNCED,
                status=ConditionStatus.FALSE,
                reason=REASON_FEEDBACK_SYNC_FAILED,
                message=f"Sync status feedback failed with error {err}",
                observed_generation=generation,
            )
        if not values:
            return values, Condition(
                type=CONDITION_FEEDBACK_SYNCED,
                status=ConditionStatus.TRUE,
                reason=REASON_NO_FEEDBACK_SYNCED,
                observed_generation=generation,
            )
        return values, Condition(
            type=CONDITION_FEEDBACK_SYNCED,
            status=ConditionStatus.TRUE,
            reason=REASON_FEEDBACK_SYNCED,
            observed_generation=generation,
        )
