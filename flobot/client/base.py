"""Abstract sender/notifier contract of the messaging backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flobot.models import Post, Trigger


class BackendError(Exception):
    """A call to the messaging backend failed."""


class BackendTimeout(BackendError):
    pass


class BackendStatusError(BackendError):
    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(f"backend replied with status {status_code}: {message}")
        self.status_code = status_code


class BackendBodyError(BackendError):
    """The backend replied with a body that could not be decoded."""


class Client(ABC):
    @abstractmethod
    async def reply(self, post: Post, text: str) -> None: ...

    @abstractmethod
    async def reaction(self, post: Post, emoji_name: str) -> None: ...

    @abstractmethod
    async def send_trigger_list(self, triggers: list[Trigger], post: Post) -> None: ...

    @abstractmethod
    async def debug(self, text: str) -> None:
        """Send ``text`` to the side channel used to report failures."""

    @abstractmethod
    async def startup(self, summary: str) -> None: ...
