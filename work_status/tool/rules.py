"""Work-status rules action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast

from work_status.statusfeedback import DefaultCommonFieldsRuleResolver

from .format import FORMATTERS, PrintFormatter


def builtin_rules(
    resolver: DefaultCommonFieldsRuleResolver | None = None,
) -> list[dict[str, Any]]:
    """Return a row for each path of the built-in CommonFields rules."""
    resolver = resolver or DefaultCommonFieldsRuleResolver()
    results = []
    for gvk in resolver.supported_kinds():
        for path in resolver.get_paths_by_kind(gvk):
            results.append(
                {
                    "api_version": gvk.api_version,
                    "kind": gvk.kind,
                    "name": path.name,
                    "path": path.path,
                }
            )
    return results


class RulesAction:
    """Work-status rules action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "rules",
                help="Print the built-in CommonFields feedback rules",
                description="Print the status paths extracted for each known kind.",
            ),
        )
        args.add_argument(
            "--kind",
            help="Only print the rules for this kind",
            default=None,
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
        kind: str | None,
        output: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        results = builtin_rules()
        if kind:
            results = [row for row in results if row["kind"].lower() == kind.lower()]
        if output == "table":
            PrintFormatter().print(results)
            return
        FORMATTERS[output]().print(results)
