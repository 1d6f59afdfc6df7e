"""Status feedback module.

This module resolves the feedback rules of a manifest into status paths and
extracts the named values from a live resource.
"""

from .reader import StatusReader
from .rules import (
    CommonFieldsRuleResolver,
    DefaultCommonFieldsRuleResolver,
    DEFAULT_COMMON_FIELDS_RULES,
    resolve_paths,
)

__all__ = [
    "StatusReader",
    "CommonFieldsRuleResolver",
    "DefaultCommonFieldsRuleResolver",
    "DEFAULT_COMMON_FIELDS_RULES",
    "resolve_paths",
]
