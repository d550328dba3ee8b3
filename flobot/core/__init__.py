"""Core modules for flobot."""

from .tempo import Tempo
from .queue import EventQueue, QueueClosed
from .instance import (
    ClientFailure,
    ConsumerDisconnected,
    Instance,
    InstanceError,
    MiddlewareFailure,
    StatusFailure,
    UnknownStatus,
)

__all__ = [
    "ClientFailure",
    "ConsumerDisconnected",
    "EventQueue",
    "Instance",
    "InstanceError",
    "MiddlewareFailure",
    "QueueClosed",
    "StatusFailure",
    "Tempo",
    "UnknownStatus",
]
