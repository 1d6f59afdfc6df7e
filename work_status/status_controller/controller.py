"""
Status Controller implementation.

This controller keeps the status of each Work on the hub in sync with the
resources it deployed on the spoke cluster. For every manifest it records
whether the resource exists and the feedback values selected by the manifest
rules, then rolls the availability of all manifests up into the Work
Available condition.

Key Concepts:
    - Level-triggered: every `sync_interval` seconds all Works are listed and
      synced, so any missed change or failed write heals on the next pass.
    - Edge-triggered: optionally, a Work is also synced as soon as it is added
      or its spec changes.
    - Both share the same per-Work sync and rely on conditional status writes
      rather than locks. A conflicting write is dropped and recomputed on the
      next pass.

Dependencies:
    - work_status.store.Store: For reading Works and writing their status.
    - work_status.spoke.SpokeClient: For fetching the live resources.
    - work_status.statusfeedback.StatusReader: For extracting feedback values.
"""

import asyncio
import copy
from dataclasses import dataclass
import logging

from work_status.conditions import (
    CONDITION_FEEDBACK_SYNCED,
    remove_status_condition,
    set_status_condition,
)
from work_status.config import StatusControllerConfig
from work_status.context import trace_context
from work_status.exceptions import (
    ConflictError,
    ListError,
    ObjectNotFoundError,
    WorkStatusException,
)
from work_status.manifest import (
    FeedbackResult,
    ManifestCondition,
    ManifestResourceMeta,
    NamedResource,
    Work,
)
from work_status.spoke import SpokeClient
from work_status.statusfeedback import StatusReader
from work_status.store import Store
from work_status.task import get_task_service

from .aggregate import aggregate_manifest_conditions
from .builder import StatusBuilder
from .tracker import SyncTracker

_LOGGER = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """The outcome of syncing one Work."""

    work_id: NamedResource
    changed: bool = False
    """The rebuilt status differs from the stored status."""

    written: bool = False
    """The rebuilt status was written to the store."""

    conflict: bool = False
    """The write was rejected because the Work changed underneath."""


class StatusController:
    """
    Controller for syncing the status of Work resources.

    The controller rebuilds the complete status of a Work on every pass and
    only writes it when it differs from the stored status.
    """

    def __init__(
        self,
        store: Store,
        spoke: SpokeClient,
        config: StatusControllerConfig | None = None,
        reader: StatusReader | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: The hub store holding the Work records
            spoke: The client for fetching live resources from the spoke cluster
            config: The configuration for the controller
            reader: Optional StatusReader with custom built-in rules
        """
        self._store = store
        self._config = config or StatusControllerConfig()
        self._builder = StatusBuilder(spoke, self._config, reader)
        self._tracker = SyncTracker()
        self._task_service = get_task_service()
        self._tasks: list[asyncio.Task[None]] = []
        self._reconciles: set[asyncio.Task[ReconcileResult]] = set()

    def start(self) -> None:
        """Start the periodic sync loop, and the watcher when enabled."""
        if self._tasks:
            return
        _LOGGER.info(
            "Starting StatusController with sync interval %ss",
            self._config.sync_interval,
        )
        self._tasks.append(
            self._task_service.create_background_task(
                self._sync_loop(), name="status-sync-loop"
            )
        )
        if self._config.watch_updates:
            self._tasks.append(
                self._task_service.create_background_task(
                    self._watch_works(), name="status-watch"
                )
            )

    async def close(self) -> None:
        """Stop the loops and any reconcile started by the watcher.

        A pass interrupted by cancellation never writes a partial status since
        the status is written in a single call at the end of the pass.
        """
        _LOGGER.info(
            "Closing StatusController, cancelling %d reconcile tasks",
            len(self._reconciles),
        )
        for task in [*self._tasks, *self._reconciles]:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await self._task_service.block_till_done()

    async def _sync_loop(self) -> None:
        """Sync every Work, then sleep for the sync interval, until cancelled."""
        while True:
            try:
                await self.sync_all_works()
            except Exception as err:  # pylint: disable=broad-except
                _LOGGER.exception("Sync pass failed, retrying next interval: %s", err)
            await asyncio.sleep(self._config.sync_interval)

    async def _watch_works(self) -> None:
        """Reconcile each Work as it is added or its spec changes."""
        _LOGGER.info("Watching for Work updates in the store")
        async for work_id in self._store.watch_updated():
            task = self._task_service.create_task(
                self.reconcile(work_id, periodic=False), name=f"reconcile-{work_id}"
            )
            self._reconciles.add(task)
            task.add_done_callback(self._reconciles.discard)

    async def sync_all_works(self) -> list[ReconcileResult]:
        """List every Work and sync each of them.

        A failure to list is logged and the pass is skipped. A failure to sync
        one Work is logged and does not affect the others.
        """
        _LOGGER.info("Syncing all Works")
        try:
            async with asyncio.timeout(self._config.store_timeout):
                works = await self._store.list_works()
        except (ListError, TimeoutError) as err:
            _LOGGER.error("Unable to list Works, skipping pass: %s", err)
            return []
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.exception("Unexpected error listing Works, skipping pass: %s", err)
            return []

        if not works:
            _LOGGER.info("No Works found")
        self._tracker.prune({work.work_id for work in works})

        semaphore = asyncio.Semaphore(self._config.max_concurrent_works)

        async def sync_one(work: Work) -> ReconcileResult | None:
            async with semaphore:
                try:
                    return await self.sync_work(work)
                except WorkStatusException as err:
                    _LOGGER.error("Unable to sync Work %s: %s", work.work_id, err)
                except Exception as err:  # pylint: disable=broad-except
                    _LOGGER.exception(
                        "Unexpected error syncing Work %s: %s", work.work_id, err
                    )
            return None

        results = await asyncio.gather(*(sync_one(work) for work in works))
        return [result for result in results if result is not None]

    async def reconcile(
        self, work_id: NamedResource, periodic: bool = True
    ) -> ReconcileResult:
        """Read one Work from the store and sync it.

        A Work that no longer exists is ignored.
        """
        _LOGGER.info("Reconciling Work %s", work_id)
        try:
            async with asyncio.timeout(self._config.store_timeout):
                work = await self._store.get_work(work_id)
        except ObjectNotFoundError:
            _LOGGER.debug("Work %s not found, nothing to reconcile", work_id)
            self._tracker.forget(work_id)
            return ReconcileResult(work_id=work_id)
        return await self.sync_work(work, periodic)

    async def sync_work(self, original: Work, periodic: bool = True) -> ReconcileResult:
        """Rebuild the status of a Work and write it if it changed.

        Only periodic passes count towards the stop sync threshold, so a Work
        also synced by the watcher stops after the configured number of
        intervals.
        """
        work_id = original.work_id
        with trace_context(f"sync {work_id}"):
            work = copy.deepcopy(original)
            await self._build_status(work, periodic)

        result = ReconcileResult(work_id=work_id)
        if work.status == original.status:
            _LOGGER.debug("Status of Work %s unchanged", work_id)
            return result
        result.changed = True

        try:
            async with asyncio.timeout(self._config.store_timeout):
                await self._store.update_status(
                    work_id, original.resource_version, work.status
                )
        except ConflictError as err:
            _LOGGER.debug("Deferring status update of Work %s: %s", work_id, err)
            result.conflict = True
            return result
        except ObjectNotFoundError:
            _LOGGER.debug("Work %s was deleted, dropping status update", work_id)
            self._tracker.forget(work_id)
            return result
        _LOGGER.info("Updated status of Work %s", work_id)
        result.written = True
        return result

    async def _build_status(self, work: Work, periodic: bool) -> None:
        """Replace the status of the Work with one rebuilt from the spoke cluster."""
        work_id = work.work_id
        generation = work.generation
        previous = work.status.resource_status.manifests
        manifest_conditions: list[ManifestCondition] = []

        for ordinal, manifest in enumerate(work.spec.manifests):
            observation = await self._builder.build_available_condition(
                manifest, ordinal, generation
            )
            meta = observation.meta or ManifestResourceMeta(
                ordinal=ordinal, group="", version="", kind="", name=""
            )
            entry = _find_manifest_condition(previous, meta) or ManifestCondition(
                resource_meta=meta
            )
            entry.resource_meta = meta
            set_status_condition(entry.conditions, observation.condition)
            manifest_conditions.append(entry)

            if not observation.available or observation.obj is None:
                _LOGGER.debug(
                    "Skipping status feedback for manifest %s of %s: %s",
                    meta,
                    work_id,
                    observation.error,
                )
                continue

            if (manifest_config := work.spec.find_manifest_config(meta)) is None:
                remove_status_condition(entry.conditions, CONDITION_FEEDBACK_SYNCED)
                entry.status_feedbacks = FeedbackResult()
                continue

            rules = manifest_config.feedback_rules
            threshold = manifest_config.stop_sync_threshold
            if threshold is None:
                threshold = self._config.stop_sync_threshold
            if self._tracker.should_skip(work_id, meta, rules, threshold):
                _LOGGER.debug(
                    "Feedback for manifest %s of %s unchanged for %d passes",
                    meta,
                    work_id,
                    threshold,
                )
                continue

            values, feedback_condition = self._builder.build_feedback(
                meta, observation.obj, rules, generation
            )
            self._tracker.observe(
                work_id,
                meta,
                rules,
                values,
                feedback_condition,
                count_unchanged=periodic,
            )
            set_status_condition(entry.conditions, feedback_condition)
            entry.status_feedbacks = FeedbackResult(values=values)

        self._tracker.forget(
            work_id, keep_ordinals=set(range(len(work.spec.manifests)))
        )
        work.status.resource_status.manifests = manifest_conditions
        set_status_condition(
            work.status.conditions,
            aggregate_manifest_conditions(generation, manifest_conditions),
        )


def _find_manifest_condition(
    manifests: list[ManifestCondition], meta: ManifestResourceMeta
) -> ManifestCondition | None:
    """Return the status entry for the same ordinal and resource."""
    for manifest in manifests:
        current = manifest.resource_meta
        if current.ordinal == meta.ordinal and current.same_resource(meta):
            return manifest
    return None
