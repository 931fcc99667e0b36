"""Configuration for the delayed visibility controller."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Optional

DEFER = -1
"""``enter_delay`` sentinel: mark content rendered on the next idle slot."""

_DEFAULT_IDLE_TIMEOUT = 100
_DEFAULT_IDLE_FALLBACK_DELAY = 1


class DelayRenderError(Exception):
    """Base class for errors raised by delayrender."""


class InvalidConfigurationError(DelayRenderError, ValueError):
    """Raised when a delay option is out of range."""


def _require_int(name: str, value: object) -> None:
    # bool is an int subclass but never a meaningful delay.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")


@dataclass(frozen=True)
class DelayOptions:
    """Delays (in milliseconds) applied around a visibility transition.

    ``enter_delay`` is the wait before content counts as rendered once the
    signal turns on; :data:`DEFER` hands that wait to the scheduler's idle
    queue, bounded by ``idle_timeout``.  When the scheduler has no idle queue
    a plain timer of ``idle_fallback_delay`` is used instead.

    ``exit_delay`` is the nominal wait before content is unmounted once the
    signal turns off.  ``on_discard`` runs after each unmount that follows a
    real mount.
    """

    enter_delay: int = 0
    exit_delay: int = 0
    on_discard: Optional[Callable[[], None]] = None
    idle_timeout: int = _DEFAULT_IDLE_TIMEOUT
    idle_fallback_delay: int = _DEFAULT_IDLE_FALLBACK_DELAY

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ``TypeError`` or ``InvalidConfigurationError`` on bad values."""
        for name in ("enter_delay", "exit_delay", "idle_timeout", "idle_fallback_delay"):
            _require_int(name, getattr(self, name))

        if self.enter_delay < 0 and self.enter_delay != DEFER:
            raise InvalidConfigurationError(
                f"enter_delay must be >= 0 or DEFER ({DEFER}), got {self.enter_delay}"
            )
        for name in ("exit_delay", "idle_timeout", "idle_fallback_delay"):
            value = getattr(self, name)
            if value < 0:
                raise InvalidConfigurationError(f"{name} must be >= 0, got {value}")

        if self.on_discard is not None and not callable(self.on_discard):
            raise TypeError(
                f"on_discard must be callable, got {type(self.on_discard).__name__}"
            )

    @property
    def defers_enter(self) -> bool:
        return self.enter_delay == DEFER

    def replace(self, **changes: Any) -> DelayOptions:
        """Return a validated copy with *changes* applied."""
        return dataclasses.replace(self, **changes)
