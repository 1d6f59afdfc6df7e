"""Tests for the work-status extract command."""

import json

import pytest

from work_status.exceptions import InputException
from work_status.manifest import JsonPath
from work_status.tool.extract import object_meta, parse_json_path_flag

from . import TESTDATA, run_command


def test_parse_json_path_flag() -> None:
    """Test parsing a NAME=EXPRESSION flag."""
    assert parse_json_path_flag("Ready=.status.conditions[0].status") == JsonPath(
        name="Ready", path=".status.conditions[0].status"
    )
    assert parse_json_path_flag('Complete=.status[?(@.type=="A")]') == JsonPath(
        name="Complete", path='.status[?(@.type=="A")]'
    )


@pytest.mark.parametrize("value", ["Ready", "=.status.ready", "Ready="])
def test_parse_json_path_flag_invalid(value: str) -> None:
    """Test invalid flag values."""
    with pytest.raises(InputException, match="Invalid --json-path"):
        parse_json_path_flag(value)


def test_object_meta() -> None:
    """Test the coordinates of a spoke object."""
    meta = object_meta(
        {"apiVersion": "batch/v1", "kind": "Job", "metadata": {"name": "migrate"}}
    )
    assert (meta.group, meta.version, meta.kind) == ("batch", "v1", "Job")
    assert meta.name == "migrate"
    assert meta.namespace == ""


def test_extract_common_fields(capsys: pytest.CaptureFixture[str]) -> None:
    """Test extracting the built-in values of an object."""
    out = run_command(["extract", str(TESTDATA / "spoke" / "migrate.yaml")], capsys)
    assert out.splitlines() == [
        "RESOURCE               NAME            TYPE       VALUE",
        "Job/podinfo/migrate    JobComplete     String     True",
        "Job/podinfo/migrate    JobSucceeded    Integer    1",
    ]


def test_extract_json_paths(capsys: pytest.CaptureFixture[str]) -> None:
    """Test extracting values with explicit paths."""
    out = run_command(
        [
            "extract",
            str(TESTDATA / "spoke" / "podinfo.yaml"),
            "--json-path",
            "Ready=.status.readyReplicas",
            "--json-path",
            "Port=.spec.ports[0].port",
            "-o",
            "json",
        ],
        capsys,
    )
    assert json.loads(out) == [
        {
            "resource": "Deployment/podinfo/podinfo",
            "name": "Ready",
            "type": "Integer",
            "value": 2,
        },
        {
            "resource": "Service/podinfo/podinfo",
            "name": "Port",
            "type": "Integer",
            "value": 9898,
        },
    ]


def test_extract_unknown_kind(capsys: pytest.CaptureFixture[str]) -> None:
    """Test an object without built-in rules is reported as an error."""
    with pytest.raises(SystemExit) as exc_info:
        run_command(["extract", str(TESTDATA / "spoke" / "podinfo.yaml")], capsys)
    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    # Values of the other objects are still printed
    assert "ReadyReplicas" in captured.out
    assert "work-status error:" in captured.err
    assert "cannot find the CommonFields statuses" in captured.err


def test_extract_invalid_flag(capsys: pytest.CaptureFixture[str]) -> None:
    """Test an invalid --json-path flag."""
    with pytest.raises(SystemExit) as exc_info:
        run_command(
            ["extract", str(TESTDATA / "spoke"), "--json-path", "Ready"], capsys
        )
    assert exc_info.value.code == 1
    assert "Invalid --json-path 'Ready'" in capsys.readouterr().err
