"""Mattermost backend: REST client (httpx) and websocket listener (aiohttp)."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp
import httpx

from flobot.client.base import (
    BackendBodyError,
    BackendError,
    BackendStatusError,
    BackendTimeout,
    Client,
)
from flobot.client.decode import decode_event
from flobot.config import MattermostConfig
from flobot.core.queue import EventQueue, QueueClosed
from flobot.models import Post, Trigger
from flobot.utils.logging import get_logger

log = get_logger(__name__)


def format_trigger_list(triggers: list[Trigger]) -> str:
    lines = ["| Trigger | Reaction |", "| --- | --- |"]
    lines += [f"| {t.triggered_by} | {t.describe()} |" for t in triggers]
    return "\n".join(lines)


class MattermostClient(Client):
    def __init__(
        self,
        config: MattermostConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None
        self._me: str = ""

    @property
    def me(self) -> str:
        return self._me

    async def start(self) -> None:
        self._http_client = httpx.AsyncClient(
            base_url=self._config.api_url.rstrip("/"),
            headers={"Authorization": f"Bearer {self._config.token}"},
            timeout=self._config.timeout,
            transport=self._transport,
        )
        user = await self._request("GET", "/api/v4/users/me")
        self._me = str(user["id"])
        log.info("mattermost_client_started", user_id=self._me)

    async def stop(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------------
    # Client interface
    # ------------------------------------------------------------------

    async def reply(self, post: Post, text: str) -> None:
        await self._create_post(post.channel_id, text, root_id=post.root_id or post.id)

    async def reaction(self, post: Post, emoji_name: str) -> None:
        await self._request(
            "POST",
            "/api/v4/reactions",
            {"user_id": self._me, "post_id": post.id, "emoji_name": emoji_name},
        )

    async def send_trigger_list(self, triggers: list[Trigger], post: Post) -> None:
        await self.reply(post, format_trigger_list(triggers))

    async def debug(self, text: str) -> None:
        await self._create_post(self._config.debug_channel, text)

    async def startup(self, summary: str) -> None:
        await self._create_post(
            self._config.debug_channel, f"bot {self._config.name} is up\n{summary}"
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _create_post(self, channel_id: str, message: str, root_id: str = "") -> None:
        await self._request(
            "POST",
            "/api/v4/posts",
            {"channel_id": channel_id, "message": message, "root_id": root_id},
        )

    async def _request(
        self, method: str, path: str, body: dict[str, Any] | None = None
    ) -> Any:
        assert self._http_client is not None
        try:
            resp = await self._http_client.request(method, path, json=body)
        except httpx.TimeoutException as e:
            raise BackendTimeout(f"{method} {path}: {e}") from e
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path}: {e}") from e

        if resp.status_code >= 400:
            raise BackendStatusError(resp.status_code, resp.text[:200])
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise BackendBodyError(f"{method} {path}: {e}") from e


class MattermostListener:
    """Reads the Mattermost websocket and feeds decoded events to the queue.

    The queue is closed when the socket goes away, which the event loop
    reports as a fatal disconnect. There is no reconnection.
    """

    def __init__(self, config: MattermostConfig, queue: EventQueue) -> None:
        self._config = config
        self._queue = queue
        self._seq = 0

    async def listen(self) -> None:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.ws_connect(self._config.ws_url) as ws:
                    await ws.send_json(self._challenge())
                    log.info("mattermost_listener_connected", url=self._config.ws_url)
                    async for msg in ws:
                        if msg.type == aiohttp.WSMsgType.TEXT:
                            self._queue.put(decode_event(msg.data))
                        elif msg.type == aiohttp.WSMsgType.ERROR:
                            log.error("mattermost_listener_ws_error", error=str(ws.exception()))
                            break
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError):
            log.exception("mattermost_listener_error", url=self._config.ws_url)
        except QueueClosed:
            log.info("mattermost_listener_queue_closed")
        finally:
            self._queue.close()
            log.info("mattermost_listener_stopped")

    def _challenge(self) -> dict[str, Any]:
        self._seq += 1
        return {
            "seq": self._seq,
            "action": "authentication_challenge",
            "data": {"token": self._config.token},
        }
