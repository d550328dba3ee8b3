"""Messaging backend clients."""

from .base import BackendBodyError, BackendError, BackendStatusError, BackendTimeout, Client

__all__ = [
    "BackendBodyError",
    "BackendError",
    "BackendStatusError",
    "BackendTimeout",
    "Client",
]
