"""Read feedback values from a resource according to its feedback rules."""

import logging
from typing import Any

from work_status.exceptions import (
    AggregateError,
    ExtractionError,
    ParseError,
    aggregate_errors,
)
from work_status.jsonpath import get_value_by_json_path
from work_status.manifest import FeedbackRule, FeedbackValue, GroupVersionKind

from .rules import (
    CommonFieldsRuleResolver,
    DefaultCommonFieldsRuleResolver,
    resolve_paths,
)

__all__ = ["StatusReader"]

_LOGGER = logging.getLogger(__name__)


class StatusReader:
    """Extracts named values from the status of a resource."""

    def __init__(self, resolver: CommonFieldsRuleResolver | None = None) -> None:
        """Initialize StatusReader."""
        self._resolver = resolver or DefaultCommonFieldsRuleResolver()

    def get_values_by_rule(
        self, gvk: GroupVersionKind, obj: dict[str, Any], rule: FeedbackRule
    ) -> tuple[list[FeedbackValue], AggregateError | None]:
        """Return the values selected by one rule and any errors.

        Each path is evaluated independently so a failing path does not hide
        the values of the others.
        """
        paths, errors = resolve_paths(gvk, rule, self._resolver)
        values: list[FeedbackValue] = []
        for path in paths:
            try:
                value = get_value_by_json_path(path.name, path.path, obj)
            except (ParseError, ExtractionError) as err:
                _LOGGER.debug("Failed to extract %s from %s: %s", path.name, gvk, err)
                errors.append(err)
                continue
            if value is None:
                continue
            values.append(value)
        return values, aggregate_errors(errors)

    def get_values(
        self, gvk: GroupVersionKind, obj: dict[str, Any], rules: list[FeedbackRule]
    ) -> tuple[list[FeedbackValue], AggregateError | None]:
        """Return the values selected by all rules, in rule order."""
        values: list[FeedbackValue] = []
        errors: list[Exception] = []
        for rule in rules:
            rule_values, err = self.get_values_by_rule(gvk, obj, rule)
            values.extend(rule_values)
            if err is not None:
                errors.append(err)
        return values, aggregate_errors(errors)
