"""Work-status sync action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast
import pathlib

from work_status.conditions import CONDITION_AVAILABLE, find_condition
from work_status.config import StatusControllerConfig
from work_status.exceptions import WorkStatusException
from work_status.loader import LoadedResources, LoadOptions, load_resources
from work_status.manifest import WORK_DOMAIN, Work
from work_status.spoke import InMemorySpokeClient
from work_status.status_controller import StatusController
from work_status.store import InMemoryStore

from .format import FORMATTERS, PrintFormatter

_LOGGER = logging.getLogger(__name__)

WORK_API_VERSION = f"{WORK_DOMAIN}/v1alpha1"


def work_status_doc(work: Work) -> dict[str, Any]:
    """Return a Work with its status as a kubernetes style object."""
    return {
        "apiVersion": WORK_API_VERSION,
        "kind": work.kind,
        "metadata": {
            "name": work.name,
            "namespace": work.namespace,
        },
        "status": work.status.to_dict(),
    }


def work_summary(work: Work) -> dict[str, Any]:
    """Return the columns printed for a Work in table output."""
    condition = find_condition(work.status.conditions, CONDITION_AVAILABLE)
    return {
        "namespace": work.namespace,
        "name": work.name,
        "manifests": len(work.spec.manifests),
        "available": condition.status if condition else "",
        "reason": condition.reason if condition else "",
        "message": condition.message if condition else "",
    }


async def sync_resources(
    resources: LoadedResources, config: StatusControllerConfig, passes: int = 1
) -> list[Work]:
    """Run sync passes over the Works against the loaded spoke objects.

    Returns the Works with their updated status.
    """
    store = InMemoryStore()
    for work in resources.works:
        store.add_work(work)
    controller = StatusController(
        store, InMemorySpokeClient(resources.objects), config
    )
    for _ in range(passes):
        await controller.sync_all_works()
    return await store.list_works()


class SyncAction:
    """Work-status sync action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "sync",
                help="Sync the status of Works from spoke objects on disk",
                description=(
                    "Load Work resources and the live spoke objects from local "
                    "files, run sync passes and print the resulting status."
                ),
            ),
        )
        args.add_argument(
            "path",
            help="Files or directories with Work resources and spoke objects",
            type=pathlib.Path,
            nargs="+",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=["table", *FORMATTERS],
            default="yaml",
            help="Output format of the command",
        )
        args.add_argument(
            "--passes",
            type=int,
            default=1,
            help="Number of sync passes to run",
        )
        args.add_argument(
            "--stop-sync-threshold",
            type=int,
            default=0,
            help="Unchanged passes after which a manifest stops syncing (0 = never)",
        )
        args.add_argument(
            "--fetch-timeout",
            type=float,
            default=StatusControllerConfig.fetch_timeout,
            help="Seconds allowed to fetch each spoke object",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: list[pathlib.Path],
        output: str,
        passes: int,
        stop_sync_threshold: int,
        fetch_timeout: float,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if passes < 1:
            raise WorkStatusException(f"--passes must be at least 1, got {passes}")
        try:
            config = StatusControllerConfig(
                stop_sync_threshold=stop_sync_threshold,
                fetch_timeout=fetch_timeout,
            )
        except ValueError as err:
            raise WorkStatusException(str(err)) from err

        resources = LoadedResources()
        for entry in path:
            resources.extend(await load_resources(LoadOptions(path=entry)))
        if not resources.works:
            _LOGGER.warning("No Work resources found in %s", path)

        works = await sync_resources(resources, config, passes)
        if output == "table":
            PrintFormatter().print([work_summary(work) for work in works])
            return
        FORMATTERS[output]().print([work_status_doc(work) for work in works])
