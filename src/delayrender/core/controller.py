"""Delayed visibility controller: a single-timer state machine.

Turns a boolean "should be visible" signal into two outputs:

* ``mounted``: the content belongs in the render tree.
* ``rendered``: the content has fully transitioned in.

Mounting is immediate and rendering is delayed on the way in; rendering is
revoked immediately and unmounting is delayed on the way out.  Every
transition first cancels whatever the previous one scheduled, so at most one
delayed effect is ever pending.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

from delayrender.core.options import DelayOptions, DelayRenderError
from delayrender.core.scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

Listener = Callable[[bool, bool], None]


class ControllerClosedError(DelayRenderError, RuntimeError):
    """Raised when a closed controller is asked to change state."""


class DelayedRender:
    """Track desired vs. actual visibility for one piece of content.

    The initial *active* value is evaluated once at construction; after that
    call :meth:`set_active` whenever the signal changes.  Options can be given
    as a :class:`DelayOptions` or as keyword overrides, not both.
    """

    def __init__(
        self,
        active: bool = False,
        options: Optional[DelayOptions] = None,
        *,
        scheduler: Scheduler,
        **overrides: Any,
    ) -> None:
        if options is None:
            options = DelayOptions(**overrides)
        elif overrides:
            raise TypeError("pass either options or keyword overrides, not both")
        _require_bool(active)

        self._options: DelayOptions = options
        self._scheduler: Scheduler = scheduler
        self._active: bool = active
        self._mounted: bool = active
        self._rendered: bool = False
        self._mount_started_at: Optional[float] = None
        self._pending: Optional[Handle] = None
        self._listeners: list[Listener] = []
        self._closed: bool = False

        self._apply(active)

    # -- public interface ----------------------------------------------------

    def set_active(self, active: bool) -> None:
        """Feed a new value of the visibility signal.

        Repeating the current value is a no-op: nothing is cancelled and
        nothing is rescheduled.
        """
        self._require_open("set_active")
        _require_bool(active)
        if active == self._active:
            return
        self._active = active
        self._apply(active)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def rendered(self) -> bool:
        return self._rendered

    @property
    def mount_started_at(self) -> Optional[float]:
        """Scheduler time of the last off→on transition, ``None`` if never shown."""
        return self._mount_started_at

    @property
    def options(self) -> DelayOptions:
        return self._options

    def has_pending(self) -> bool:
        return self._pending is not None

    def update_options(self, options: Optional[DelayOptions] = None, **changes: Any) -> DelayOptions:
        """Swap the configuration used by the next transition.

        A timer already scheduled keeps the delay it was scheduled with.
        """
        self._require_open("update_options")
        if options is None:
            options = self._options.replace(**changes)
        elif changes:
            raise TypeError("pass either options or keyword changes, not both")
        self._options = options
        return options

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(mounted, rendered)`` after every output change.

        Returns a function that removes the listener.
        """
        self._require_open("subscribe")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Release the pending timer and drop listeners.  Safe to call twice."""
        if self._closed:
            return
        self._cancel_pending()
        self._listeners.clear()
        self._closed = True
        logger.debug("controller closed (mounted=%s rendered=%s)", self._mounted, self._rendered)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> DelayedRender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"DelayedRender(active={self._active}, mounted={self._mounted}, "
            f"rendered={self._rendered}, pending={self.has_pending()})"
        )

    # -- transitions ---------------------------------------------------------

    def _apply(self, active: bool) -> None:
        self._cancel_pending()
        if active:
            self._show(self._options)
        else:
            self._hide(self._options)

    def _show(self, options: DelayOptions) -> None:
        self._mount_started_at = self._scheduler.now()

        # Slot is filled before listeners run; they may flip the signal back.
        if options.defers_enter:
            if self._scheduler.supports_idle:
                logger.debug("enter deferred to idle slot (timeout=%dms)", options.idle_timeout)
                self._pending = self._scheduler.call_when_idle(
                    self._finish_enter, options.idle_timeout
                )
            else:
                logger.debug(
                    "no idle queue; enter deferred by %dms timer", options.idle_fallback_delay
                )
                self._pending = self._scheduler.call_later(
                    options.idle_fallback_delay, self._finish_enter
                )
            self._set_outputs(mounted=True)
        elif options.enter_delay == 0:
            self._set_outputs(mounted=True, rendered=True)
        else:
            logger.debug("render scheduled in %dms", options.enter_delay)
            self._pending = self._scheduler.call_later(options.enter_delay, self._finish_enter)
            self._set_outputs(mounted=True)

    def _hide(self, options: DelayOptions) -> None:
        delay = self._exit_delay(options)
        if delay == 0:
            self._set_outputs(mounted=False, rendered=False)
            self._discard(options.on_discard)
            return

        logger.debug("unmount scheduled in %sms", delay)
        self._pending = self._scheduler.call_later(
            delay, functools.partial(self._finish_exit, options.on_discard)
        )
        self._set_outputs(rendered=False)

    def _exit_delay(self, options: DelayOptions) -> float:
        """Shorten ``exit_delay`` for content that was only briefly mounted."""
        if self._mount_started_at is None:
            return options.exit_delay

        elapsed = self._scheduler.now() - self._mount_started_at
        if options.enter_delay > 0 and elapsed < options.enter_delay:
            # Never finished entering; nothing to transition out.
            return 0
        if options.exit_delay > 0 and elapsed < options.exit_delay:
            return elapsed
        return options.exit_delay

    def _finish_enter(self) -> None:
        self._pending = None
        self._set_outputs(rendered=True)

    def _finish_exit(self, on_discard: Optional[Callable[[], None]]) -> None:
        self._pending = None
        self._set_outputs(mounted=False)
        self._discard(on_discard)

    # -- private helpers -----------------------------------------------------

    def _discard(self, on_discard: Optional[Callable[[], None]]) -> None:
        if self._mount_started_at is None:
            return
        logger.debug("content discarded")
        if on_discard is not None:
            on_discard()

    def _set_outputs(self, *, mounted: Optional[bool] = None, rendered: Optional[bool] = None) -> None:
        changed = False
        if mounted is not None and mounted != self._mounted:
            self._mounted = mounted
            changed = True
        if rendered is not None and rendered != self._rendered:
            self._rendered = rendered
            changed = True
        if not changed:
            return
        logger.debug("outputs now mounted=%s rendered=%s", self._mounted, self._rendered)
        for listener in list(self._listeners):
            listener(self._mounted, self._rendered)

    def _cancel_pending(self) -> None:
        handle = self._pending
        self._pending = None
        if handle is not None:
            handle.cancel()

    def _require_open(self, method: str) -> None:
        if self._closed:
            raise ControllerClosedError(f"{method}() is not valid on a closed controller")


def _require_bool(value: object) -> None:
    if not isinstance(value, bool):
        raise TypeError(f"active must be a bool, got {type(value).__name__}")
