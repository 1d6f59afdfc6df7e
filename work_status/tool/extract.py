"""Work-status extract action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast
import pathlib

from work_status.exceptions import AggregateError, InputException, WorkStatusException
from work_status.loader import LoadOptions, load_resources
from work_status.manifest import (
    FeedbackRule,
    FeedbackRuleType,
    JsonPath,
    ManifestResourceMeta,
    parse_api_version,
)
from work_status.statusfeedback import StatusReader

from .format import FORMATTERS, PrintFormatter

_LOGGER = logging.getLogger(__name__)


def parse_json_path_flag(value: str) -> JsonPath:
    """Parse a `NAME=EXPRESSION` flag into a JsonPath."""
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise InputException(f"Invalid --json-path '{value}', expected NAME=EXPRESSION")
    return JsonPath(name=name, path=path)


def object_meta(obj: dict[str, Any]) -> ManifestResourceMeta:
    """Return the coordinates of a spoke object."""
    group, version = parse_api_version(obj["apiVersion"])
    metadata = obj["metadata"]
    return ManifestResourceMeta(
        ordinal=0,
        group=group,
        version=version,
        kind=obj["kind"],
        name=metadata["name"],
        namespace=metadata.get("namespace", ""),
    )


class ExtractAction:
    """Work-status extract action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "extract",
                help="Extract status feedback values from objects on disk",
                description=(
                    "Evaluate feedback rules against each object in the files. "
                    "Uses the built-in rules for the object kind unless "
                    "--json-path is given."
                ),
            ),
        )
        args.add_argument(
            "path",
            help="File or directory with the objects to read",
            type=pathlib.Path,
        )
        args.add_argument(
            "--json-path",
            action="append",
            default=[],
            help="A NAME=EXPRESSION path to extract, may be repeated",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=["table", *FORMATTERS],
            default="table",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        json_path: list[str],
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if json_path:
            rule = FeedbackRule(
                type=FeedbackRuleType.JSON_PATHS,
                json_paths=[parse_json_path_flag(value) for value in json_path],
            )
        else:
            rule = FeedbackRule(type=FeedbackRuleType.COMMON_FIELDS)

        resources = await load_resources(LoadOptions(path=path))
        reader = StatusReader()
        results: list[dict[str, Any]] = []
        errors: list[Exception] = []
        for obj in resources.objects:
            meta = object_meta(obj)
            values, err = reader.get_values_by_rule(meta.gvk, obj, rule)
            if err is not None:
                _LOGGER.error("Unable to extract values from %s: %s", meta, err)
                errors.append(err)
            for value in values:
                results.append(
                    {
                        "resource": str(meta),
                        "name": value.name,
                        "type": str(value.value.type),
                        "value": value.value.value,
                    }
                )

        if output == "table":
            PrintFormatter().print(results)
        else:
            FORMATTERS[output]().print(results)
        if errors:
            raise WorkStatusException(
                f"Failed to extract values: {AggregateError(errors)}"
            )
