"""Tests for the virtual-clock trace runner."""

from unittest.mock import MagicMock

import pytest

from delayrender.core.options import DEFER, DelayOptions
from delayrender.core.trace import (
    TraceEvent,
    TraceLine,
    TraceOrderError,
    parse_event,
    run_trace,
)

# ---------------------------------------------------------------------------
# parse_event()
# ---------------------------------------------------------------------------


class TestParseEvent:
    """Events are written on@MS / off@MS."""

    def test_on(self) -> None:
        assert parse_event("on@0") == TraceEvent(at=0, active=True)

    def test_off_is_case_insensitive(self) -> None:
        assert parse_event(" OFF@250 ") == TraceEvent(at=250, active=False)

    @pytest.mark.parametrize("text", ["on", "on@", "maybe@3", "off@-5", "on@1.5", ""])
    def test_malformed_raises_value_error(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_event(text)


# ---------------------------------------------------------------------------
# TraceLine.format()
# ---------------------------------------------------------------------------


class TestTraceLineFormat:
    def test_output_line(self) -> None:
        assert TraceLine(50, True, False).format() == "    50ms  mounted=yes  rendered=no"

    def test_discard_line(self) -> None:
        assert TraceLine(100, False, False, discard=True).format() == "   100ms  discard"


# ---------------------------------------------------------------------------
# run_trace()
# ---------------------------------------------------------------------------


class TestRunTrace:
    """run_trace() records every output change on a virtual clock."""

    def test_bounded_flash(self) -> None:
        lines = run_trace(
            [TraceEvent(0, True), TraceEvent(50, False)], DelayOptions(exit_delay=1000)
        )
        assert lines == [
            TraceLine(0, False, False),
            TraceLine(0, True, True),
            TraceLine(50, True, False),
            TraceLine(100, False, False),
            TraceLine(100, False, False, discard=True),
        ]

    def test_fast_toggle_during_enter(self) -> None:
        lines = run_trace(
            [TraceEvent(0, True), TraceEvent(100, False)],
            DelayOptions(enter_delay=500, exit_delay=1000),
        )
        assert lines[-2:] == [
            TraceLine(100, False, False),
            TraceLine(100, False, False, discard=True),
        ]

    def test_deferred_enter_with_idle_slot(self) -> None:
        lines = run_trace([TraceEvent(0, True)], DelayOptions(enter_delay=DEFER))
        assert lines[-1] == TraceLine(0, True, True)

    def test_deferred_enter_without_idle_slot(self) -> None:
        lines = run_trace([TraceEvent(0, True)], DelayOptions(enter_delay=DEFER), idle=False)
        assert lines[-1] == TraceLine(1, True, True)

    def test_until_stops_the_clock(self) -> None:
        lines = run_trace([TraceEvent(0, True)], DelayOptions(enter_delay=500), until=100)
        assert lines[-1] == TraceLine(0, True, False)

    def test_user_discard_still_called(self) -> None:
        on_discard = MagicMock()
        run_trace(
            [TraceEvent(0, True), TraceEvent(10, False)], DelayOptions(on_discard=on_discard)
        )
        on_discard.assert_called_once_with()

    def test_out_of_order_events_raise(self) -> None:
        with pytest.raises(TraceOrderError):
            run_trace([TraceEvent(50, True), TraceEvent(10, False)], DelayOptions())

    def test_until_before_last_event_raises(self) -> None:
        with pytest.raises(TraceOrderError):
            run_trace([TraceEvent(50, True)], DelayOptions(), until=10)
