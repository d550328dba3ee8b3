"""Handler interface and generic handlers."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from flobot.models import Post
from flobot.utils.logging import get_logger

log = get_logger(__name__)


class Handler(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    def help(self) -> str | None:
        """Text shown by ``!help <name>``. Handlers without help are not listed."""
        return None

    @abstractmethod
    async def handle(self, post: Post) -> None:
        """React to ``post``. Posts the handler does not recognize are ignored."""


class LockedHandler(Handler):
    """Give a wrapped handler exclusive access to its state, one call at a time."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._handler.name

    @property
    def help(self) -> str | None:
        return self._handler.help

    async def handle(self, post: Post) -> None:
        async with self._lock:
            await self._handler.handle(post)


class DebugHandler(Handler):
    def __init__(self, name: str = "debug") -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def handle(self, post: Post) -> None:
        log.info("debug_handler_post", handler=self._name, post=repr(post))
