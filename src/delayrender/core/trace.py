"""Replay a scripted signal against a controller on a virtual clock."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from delayrender.core.controller import DelayedRender
from delayrender.core.options import DelayOptions, DelayRenderError
from delayrender.core.scheduler import ManualScheduler

_EVENT_RE = re.compile(r"^(on|off)@(\d+)$")


class TraceOrderError(DelayRenderError):
    """Raised when trace events are not in time order."""


@dataclass(frozen=True)
class TraceEvent:
    """The signal switching to *active* at *at* milliseconds."""

    at: int
    active: bool


@dataclass(frozen=True)
class TraceLine:
    """One observed output change (or a discard) at *at* milliseconds."""

    at: float
    mounted: bool
    rendered: bool
    discard: bool = False

    def format(self) -> str:
        stamp = f"{int(round(self.at)):>6}ms"
        if self.discard:
            return f"{stamp}  discard"
        return f"{stamp}  mounted={_yes_no(self.mounted)}  rendered={_yes_no(self.rendered)}"


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def parse_event(text: str) -> TraceEvent:
    """Parse ``on@MS`` or ``off@MS``.  Raises ``ValueError`` otherwise."""
    match = _EVENT_RE.match(text.strip().lower())
    if match is None:
        raise ValueError(f"expected on@MS or off@MS, got {text!r}")
    return TraceEvent(at=int(match.group(2)), active=match.group(1) == "on")


def run_trace(
    events: Iterable[TraceEvent],
    options: DelayOptions,
    *,
    idle: bool = True,
    until: Optional[int] = None,
) -> list[TraceLine]:
    """Drive a controller through *events* and record what it does.

    The controller starts inactive at 0ms.  When *idle* is true an idle slot
    is granted before the clock moves, otherwise deferred renders take the
    fallback timer.  Without *until* the trace runs until nothing is pending.
    """
    events = list(events)
    for earlier, later in zip(events, events[1:]):
        if later.at < earlier.at:
            raise TraceOrderError(f"event at {later.at}ms comes after one at {earlier.at}ms")
    if until is not None and events and until < events[-1].at:
        raise TraceOrderError(f"until={until}ms is before the last event at {events[-1].at}ms")

    scheduler = ManualScheduler(supports_idle=idle)
    lines: list[TraceLine] = []
    user_discard = options.on_discard

    def record_discard() -> None:
        # Discards only ever follow an unmount.
        lines.append(TraceLine(scheduler.now(), False, False, discard=True))
        if user_discard is not None:
            user_discard()

    controller = DelayedRender(False, options.replace(on_discard=record_discard), scheduler=scheduler)
    lines.append(TraceLine(0, controller.mounted, controller.rendered))
    controller.subscribe(lambda mounted, rendered: lines.append(TraceLine(scheduler.now(), mounted, rendered)))

    with controller:
        for event in events:
            _advance_to(scheduler, event.at, idle)
            controller.set_active(event.active)

        if until is not None:
            _advance_to(scheduler, until, idle)
        else:
            _drain(scheduler, idle)
    return lines


def _advance_to(scheduler: ManualScheduler, at: float, idle: bool) -> None:
    if idle:
        scheduler.run_idle()
    scheduler.advance(at - scheduler.now())


def _drain(scheduler: ManualScheduler, idle: bool) -> None:
    while scheduler.pending():
        if idle and scheduler.run_idle():
            continue
        due = scheduler.next_due()
        if due is None:
            break
        scheduler.advance(due - scheduler.now())
