"""Tests for the context tracing helpers."""

import logging

import pytest

from work_status.context import trace, trace_context


def test_trace_context(caplog: pytest.LogCaptureFixture) -> None:
    """Test nested trace labels are logged and restored."""
    with caplog.at_level(logging.DEBUG, logger="work_status.context"):
        with trace_context("sync"):
            assert trace.get() == ("sync",)
            with trace_context("Work/cluster1/web"):
                assert trace.get() == ("sync", "Work/cluster1/web")
            assert trace.get() == ("sync",)
    assert trace.get() == ()
    assert "[Trace] > sync > Work/cluster1/web" in caplog.text
    assert "[Trace] < sync" in caplog.text


def test_trace_context_exception() -> None:
    """Test the trace is restored when the block raises."""
    with pytest.raises(ValueError):
        with trace_context("failing"):
            raise ValueError("boom")
    assert trace.get() == ()
