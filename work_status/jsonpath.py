"""Evaluate simple path expressions against loosely typed status documents.

Supported expressions are a small subset of kubectl JSONPath that select a
single value:

  - `.status.replicas` or `['status']['replicas']` for map access
  - `.status.items[0]` for array indexes, negative indexes count from the end
  - `.status.conditions[?(@.type=="Ready")].status` to pick the elements of
    an array whose field equals (or with `!=` differs from) a literal

The expression may be wrapped in `{...}` and may start with `$`. Evaluation
tolerates missing keys: a lookup that does not match anything produces no
value rather than an error.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
import functools
import logging
import re
from typing import Any

from .exceptions import ExtractionError, ParseError
from .manifest import FeedbackValue, FieldValue

__all__ = [
    "parse_path",
    "find_results",
    "get_value_by_json_path",
]

_LOGGER = logging.getLogger(__name__)

_IDENT = r"[\w\-/]+"
_LITERAL = r"\"[^\"]*\"|'[^']*'|-?\d+(?:\.\d+)?|true|false|null"

_FIELD_RE = re.compile(rf"\.({_IDENT})")
_INDEX_RE = re.compile(r"\[\s*(-?\d+)\s*\]")
_QUOTED_KEY_RE = re.compile(r"\[\s*(?:\"([^\"]*)\"|'([^']*)')\s*\]")
_FILTER_RE = re.compile(
    rf"\[\s*\?\(\s*@((?:\.{_IDENT})+)\s*(==|!=)\s*({_LITERAL})\s*\)\s*\]"
)


class Segment:
    """A single step of a path expression."""

    def apply(self, node: Any) -> Iterator[Any]:
        """Yield the values selected from the node."""
        raise NotImplementedError


@dataclass(frozen=True)
class FieldSegment(Segment):
    """Select a key of a map."""

    key: str

    def apply(self, node: Any) -> Iterator[Any]:
        if isinstance(node, dict) and self.key in node:
            yield node[self.key]


@dataclass(frozen=True)
class IndexSegment(Segment):
    """Select an element of an array."""

    index: int

    def apply(self, node: Any) -> Iterator[Any]:
        if isinstance(node, list) and -len(node) <= self.index < len(node):
            yield node[self.index]


@dataclass(frozen=True)
class FilterSegment(Segment):
    """Select the elements of an array where a field compares to a literal."""

    fields: tuple[str, ...]
    operator: str
    literal: Any

    def apply(self, node: Any) -> Iterator[Any]:
        if not isinstance(node, list):
            return
        for item in node:
            found, value = _lookup(item, self.fields)
            if not found:
                continue
            equal = _literal_equal(value, self.literal)
            if (self.operator == "==") == equal:
                yield item


def _lookup(node: Any, fields: tuple[str, ...]) -> tuple[bool, Any]:
    """Follow the chain of map keys, returning whether it was found."""
    for key in fields:
        if not isinstance(node, dict) or key not in node:
            return False, None
        node = node[key]
    return True, node


def _literal_equal(value: Any, literal: Any) -> bool:
    """Compare without treating booleans as integers."""
    if isinstance(value, bool) or isinstance(literal, bool):
        return value is literal
    return bool(value == literal)


def _parse_literal(text: str) -> Any:
    if text[0] in "\"'":
        return text[1:-1]
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if "." in text:
        return float(text)
    return int(text)


@functools.lru_cache(maxsize=256)
def _parse(path: str) -> tuple[Segment, ...]:
    """Parse the expression, raising ValueError when it is malformed."""
    expr = path.strip()
    if expr.startswith("{"):
        if not expr.endswith("}"):
            raise ValueError("unclosed action")
        expr = expr[1:-1].strip()
    if expr.startswith("$"):
        expr = expr[1:]
    if not expr:
        raise ValueError("empty path expression")

    segments: list[Segment] = []
    pos = 0
    while pos < len(expr):
        if match := _FIELD_RE.match(expr, pos):
            segments.append(FieldSegment(match.group(1)))
        elif match := _INDEX_RE.match(expr, pos):
            segments.append(IndexSegment(int(match.group(1))))
        elif match := _QUOTED_KEY_RE.match(expr, pos):
            key = match.group(1) if match.group(1) is not None else match.group(2)
            segments.append(FieldSegment(key))
        elif match := _FILTER_RE.match(expr, pos):
            segments.append(
                FilterSegment(
                    fields=tuple(match.group(1).split(".")[1:]),
                    operator=match.group(2),
                    literal=_parse_literal(match.group(3)),
                )
            )
        else:
            raise ValueError(f"unrecognized character at position {pos}: {expr[pos:]}")
        pos = match.end()
    return tuple(segments)


def parse_path(name: str, path: str) -> tuple[Segment, ...]:
    """Parse a path expression into segments.

    Raises:
        ParseError: If the expression is malformed.
    """
    try:
        return _parse(path)
    except ValueError as err:
        raise ParseError(name, path, str(err)) from err


def find_results(segments: Iterable[Segment], obj: Any) -> list[Any]:
    """Return every value selected by the segments, missing keys are skipped."""
    nodes = [obj]
    for segment in segments:
        nodes = [result for node in nodes for result in segment.apply(node)]
        if not nodes:
            break
    return nodes


def get_value_by_json_path(
    name: str, path: str, obj: dict[str, Any]
) -> FeedbackValue | None:
    """Return the named scalar value selected by the path.

    Returns None when the path does not select anything or selects a null.
    When a filter matches more than one element the first value is used.

    Raises:
        ParseError: If the path is malformed.
        ExtractionError: If the value is a map or array, or a scalar of a type
            other than integer, string or boolean.
    """
    results = find_results(parse_path(name, path), obj)
    if not results:
        return None
    value = results[0]
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ExtractionError(
            name,
            f"the value for {name} is not a single scalar value "
            f"(found {type(value).__name__})",
        )
    try:
        field_value = FieldValue.of(value)
    except TypeError as err:
        raise ExtractionError(
            name,
            f"the type {type(value).__name__} of the value for {name} is not supported",
        ) from err
    _LOGGER.debug("Found value for %s at %s: %s", name, path, field_value.value)
    return FeedbackValue(name=name, value=field_value)
