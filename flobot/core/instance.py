"""Event loop: runs middlewares on each event and dispatches posts to handlers."""

from __future__ import annotations

import asyncio
import re

from flobot.client.base import BackendError, Client
from flobot.core.queue import EventQueue, QueueClosed
from flobot.handlers.base import Handler
from flobot.middleware.base import Middleware, MiddlewareError
from flobot.models import (
    Event,
    Hello,
    Post,
    PostEdited,
    Shutdown,
    Status,
    StatusCode,
    StatusError,
    Unsupported,
)
from flobot.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_POLL_TIMEOUT = 5.0
HELP_NOT_FOUND = "tutétrompé"

_HELP_NAME = re.compile(r"^!help ([a-zA-Z0-9_-]+).*")


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------

class InstanceError(Exception):
    """Fatal error: the event loop stops and raises it to its caller."""


class ConsumerDisconnected(InstanceError):
    pass


class StatusFailure(InstanceError):
    pass


class UnknownStatus(InstanceError):
    pass


class MiddlewareFailure(InstanceError):
    pass


class ClientFailure(InstanceError):
    pass


# ---------------------------------------------------------------------------
# Instance
# ---------------------------------------------------------------------------

class Instance:
    """Owns the middleware chain and the handler registry."""

    def __init__(self, client: Client, poll_timeout: float = DEFAULT_POLL_TIMEOUT) -> None:
        self._client = client
        self._poll_timeout = poll_timeout
        self._middlewares: list[Middleware] = []
        self._handlers: list[Handler] = []
        self._helps: dict[str, str] = {}

    @property
    def helps(self) -> dict[str, str]:
        return dict(self._helps)

    def add_middleware(self, middleware: Middleware) -> Instance:
        self._middlewares.append(middleware)
        return self

    def add_post_handler(self, handler: Handler) -> Instance:
        help_text = handler.help
        if help_text is not None:
            self._helps[handler.name] = help_text
        self._handlers.append(handler)
        return self

    def summary(self) -> str:
        """Markdown list of loaded middlewares and handlers, sent on startup."""
        lines = ["## Loaded middlewares"]
        lines += [f" * `{m.name}`" for m in self._middlewares]
        lines.append("## Loaded post handlers")
        lines += [f" * `{h.name}`" for h in self._handlers]
        return "\n".join(lines) + "\n"

    async def run(self, queue: EventQueue) -> None:
        """Consume ``queue`` until a ``Shutdown`` event. Raises ``InstanceError``."""
        try:
            await self._client.startup(self.summary())
        except BackendError as e:
            raise ClientFailure(str(e)) from e

        log.info(
            "instance_started",
            middlewares=[m.name for m in self._middlewares],
            handlers=[h.name for h in self._handlers],
        )

        while True:
            try:
                event = await queue.get(timeout=self._poll_timeout)
            except asyncio.TimeoutError:
                continue
            except QueueClosed as e:
                log.error("instance_consumer_disconnected")
                raise ConsumerDisconnected(str(e)) from e

            if isinstance(event, Shutdown):
                log.info("instance_shutdown")
                return

            await self.process(event)

    async def process(self, event: Event) -> None:
        processed = await self._process_middlewares(event)
        if processed is not None:
            await self._process_event(processed)

    async def _process_middlewares(self, event: Event) -> Event | None:
        current: Event = event
        for middleware in self._middlewares:
            try:
                result = await middleware.process(current)
            except MiddlewareError as e:
                raise MiddlewareFailure(f"{middleware.name}: {e}") from e
            if result is None:
                log.debug("middleware_dropped_event", middleware=middleware.name)
                return None
            current = result
        return current

    async def _process_event(self, event: Event) -> None:
        if isinstance(event, Post):
            await self._process_post(event)
        elif isinstance(event, PostEdited):
            log.info("edits_unsupported", post_id=event.id)
        elif isinstance(event, Unsupported):
            log.debug("unsupported_event", raw=event.raw[:200])
        elif isinstance(event, Hello):
            log.info("hello_server", server=event.server_string)
        elif isinstance(event, Status):
            self._process_status(event)
        # Shutdown is handled by run() and never gets here.

    def _process_status(self, status: Status) -> None:
        if status.code == StatusCode.OK:
            return
        if status.code == StatusCode.UNSUPPORTED:
            log.info("unsupported_status", status=repr(status))
            return

        error = status.error or StatusError.none()
        if status.code == StatusCode.ERROR:
            raise StatusFailure(error.message)
        raise UnknownStatus(error.message)

    async def _process_post(self, post: Post) -> None:
        try:
            await self._process_help(post)
        except BackendError as e:
            raise ClientFailure(str(e)) from e

        for handler in self._handlers:
            try:
                await handler.handle(post)
            except Exception as e:
                log.exception("handler_error", handler=handler.name, post_id=post.id)
                await self._report(f"error: {e!r}")

    async def _process_help(self, post: Post) -> None:
        if post.message == "!help":
            reply = "".join(f"`{name}`\n" for name in sorted(self._helps))
            await self._client.reply(post, reply)
            return

        m = _HELP_NAME.match(post.message)
        if m:
            await self._client.reply(post, self._helps.get(m.group(1), HELP_NOT_FOUND))

    async def _report(self, text: str) -> None:
        try:
            await self._client.debug(text)
        except Exception:
            log.exception("debug_report_error")
