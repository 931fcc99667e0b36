"""CLI entry point for delayrender.

Uses Click to expose the ``delayrender`` command group.  ``trace`` replays a
scripted visibility signal on a virtual clock and prints what the controller
does, which is handy when tuning enter and exit delays.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, TypeVar

import click

import delayrender
from delayrender.core.options import DelayOptions, DelayRenderError
from delayrender.core.trace import TraceEvent, parse_event, run_trace

T = TypeVar("T")


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``DelayRenderError`` to a CLI error.

    On ``DelayRenderError`` the message is printed to stderr and the
    process exits with code 1.
    """
    try:
        return action()
    except DelayRenderError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _parse_events(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[TraceEvent]:
    try:
        return [parse_event(value) for value in values]
    except ValueError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc


@click.group()
@click.version_option(version=delayrender.__version__, prog_name="delayrender")
def cli() -> None:
    """delayrender: flicker-free mount/render timing for UI content."""


@cli.command()
@click.option("--enter-delay", type=int, default=0, show_default=True,
              help="Milliseconds before content counts as rendered; -1 defers to idle.")
@click.option("--exit-delay", type=int, default=0, show_default=True,
              help="Nominal milliseconds before content is unmounted.")
@click.option("--idle/--no-idle", default=True, show_default=True,
              help="Whether the simulated host offers idle scheduling.")
@click.option("--until", type=int, default=None,
              help="Stop the clock here instead of running until nothing is pending.")
@click.option("-v", "--verbose", is_flag=True, help="Log controller decisions to stderr.")
@click.argument("events", nargs=-1, required=True, callback=_parse_events)
def trace(
    enter_delay: int,
    exit_delay: int,
    idle: bool,
    until: int | None,
    verbose: bool,
    events: list[TraceEvent],
) -> None:
    """Replay EVENTS (on@MS / off@MS) and print each output change."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    lines = _run(
        lambda: run_trace(
            events,
            DelayOptions(enter_delay=enter_delay, exit_delay=exit_delay),
            idle=idle,
            until=until,
        )
    )
    for line in lines:
        click.echo(line.format())
