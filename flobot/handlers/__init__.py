"""Post handlers dispatched by the event loop."""

from .base import DebugHandler, Handler, LockedHandler
from .trigger import TriggerHandler, compile_trigger, valid_match

__all__ = [
    "DebugHandler",
    "Handler",
    "LockedHandler",
    "TriggerHandler",
    "compile_trigger",
    "valid_match",
]
