"""Middleware interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flobot.models import Event


class MiddlewareError(Exception):
    """A middleware could not process an event. Fatal to the event loop."""


class Middleware(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def process(self, event: Event) -> Event | None:
        """Return the (possibly replaced) event to continue, or None to drop it."""
