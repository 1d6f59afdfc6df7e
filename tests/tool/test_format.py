"""Tests for the format library."""

import io
import json

import yaml

from work_status.tool.format import (
    format_columns,
    JsonFormatter,
    PrintFormatter,
    YamlFormatter,
)


def test_format_columns_empty() -> None:
    """Tests with no rows."""
    assert list(format_columns([], [])) == []


def test_format_columns_empty_rows() -> None:
    """Tests with no rows."""
    assert list(format_columns(["a", "b", "c"], [])) == ["a    b    c    "]


def test_format_columns_rows() -> None:
    """Tests format with normal rows"""
    assert list(
        format_columns(
            ["name", "namespace"], [["podinfo", "cluster1"], ["migrate", "cluster2"]]
        )
    ) == [
        "name       namespace    ",
        "podinfo    cluster1     ",
        "migrate    cluster2     ",
    ]


def test_print_formatter() -> None:
    """Print formatting with empty data."""
    formatter = PrintFormatter()
    assert list(formatter.format([])) == []


def test_print_formatter_data() -> None:
    """Print formatting data objects."""
    formatter = PrintFormatter()
    assert list(
        formatter.format(
            [
                {"name": "ReadyReplicas", "value": 2},
                {"name": "JobComplete", "value": "True"},
            ]
        )
    ) == [
        "NAME             VALUE    ",
        "ReadyReplicas    2        ",
        "JobComplete      True     ",
    ]


def test_print_formatter_keys() -> None:
    """Print formatting with column names."""
    formatter = PrintFormatter(keys=["name"])
    assert list(
        formatter.format(
            [
                {"name": "podinfo", "namespace": "cluster1"},
                {"name": "migrate", "namespace": "cluster2"},
            ],
        )
    ) == [
        "NAME       ",
        "podinfo    ",
        "migrate    ",
    ]


def test_print_formatter_strips_padding() -> None:
    """Printed lines have no trailing whitespace."""
    out = io.StringIO()
    PrintFormatter().print([{"name": "podinfo", "namespace": "cluster1"}], file=out)
    assert out.getvalue() == "NAME       NAMESPACE\npodinfo    cluster1\n"


def test_yaml_formatter() -> None:
    """Yaml formatting prints a document per object."""
    out = io.StringIO()
    YamlFormatter().print([{"name": "a"}, {"name": "b"}], file=out)
    assert out.getvalue() == "---\nname: a\n---\nname: b\n"
    assert list(yaml.safe_load_all(out.getvalue())) == [{"name": "a"}, {"name": "b"}]


def test_json_formatter() -> None:
    """Json formatting prints a single list."""
    out = io.StringIO()
    JsonFormatter().print([{"name": "a", "value": 1}], file=out)
    assert out.getvalue().endswith("]\n")
    assert json.loads(out.getvalue()) == [{"name": "a", "value": 1}]
