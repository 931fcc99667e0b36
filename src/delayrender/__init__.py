"""delayrender: decouple a visibility signal from mount/render timing."""

from delayrender.core.controller import ControllerClosedError, DelayedRender
from delayrender.core.options import (
    DEFER,
    DelayOptions,
    DelayRenderError,
    InvalidConfigurationError,
)
from delayrender.core.scheduler import AsyncioScheduler, ManualScheduler

__version__ = "0.1.0"

__all__ = [
    "DEFER",
    "AsyncioScheduler",
    "ControllerClosedError",
    "DelayOptions",
    "DelayRenderError",
    "DelayedRender",
    "InvalidConfigurationError",
    "ManualScheduler",
]
