"""Middlewares shipped with the bot."""

from __future__ import annotations

from flobot.middleware.base import Middleware
from flobot.models import Event, Hello, Post, PostEdited
from flobot.utils.logging import get_logger

log = get_logger(__name__)


class IgnoreSelf(Middleware):
    """Drop posts written by the bot itself, so it never answers its own messages.

    The bot user id is learned from the backend ``Hello`` event.
    """

    def __init__(self, my_user_id: str = "") -> None:
        self._my_user_id = my_user_id

    @property
    def name(self) -> str:
        return "ignore_self"

    async def process(self, event: Event) -> Event | None:
        if isinstance(event, Hello):
            self._my_user_id = event.my_user_id
            return event

        if isinstance(event, (Post, PostEdited)):
            if self._my_user_id and event.user_id == self._my_user_id:
                log.debug("ignore_self_dropped", post_id=event.id)
                return None

        return event


class DebugMiddleware(Middleware):
    def __init__(self, name: str = "debug") -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def process(self, event: Event) -> Event | None:
        log.debug("middleware_event", middleware=self._name, payload=repr(event))
        return event
