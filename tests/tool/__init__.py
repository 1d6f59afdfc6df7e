"""Test helpers for work-status tools."""

import pathlib

import pytest

from work_status.tool.work_status import main

TESTDATA = pathlib.Path(__file__).parent.parent / "testdata" / "work"


def run_command(args: list[str], capsys: pytest.CaptureFixture[str]) -> str:
    """Run the command line tool and return its output."""
    main(args)
    return capsys.readouterr().out
