"""Tests for the Mattermost adapter: frame decoding, REST client and listener."""

import json

import aiohttp
import httpx
import pytest
from aiohttp import web
from aiohttp import test_utils
from structlog.testing import capture_logs

from flobot.client.base import BackendBodyError, BackendError, BackendStatusError, BackendTimeout
from flobot.client.decode import decode_event
from flobot.client.mattermost import MattermostClient, MattermostListener, format_trigger_list
from flobot.config import MattermostConfig
from flobot.core.queue import EventQueue, QueueClosed
from flobot.models import (
    Hello,
    Post,
    PostEdited,
    Status,
    StatusCode,
    Trigger,
    Unsupported,
)

INNER_POST = {
    "id": "ghkm74cqzbnjxr5dx638k73xqa",
    "create_at": 1576937676623,
    "user_id": "kh9859j8kir15dmxonsm8sxq1w",
    "channel_id": "amtak96j3br5iyokgunmf188jc",
    "root_id": "",
    "parent_id": "",
    "message": "test",
}

POSTED = json.dumps({
    "event": "posted",
    "data": {
        "channel_display_name": "Town Square",
        "channel_name": "town-square",
        "channel_type": "O",
        "post": json.dumps(INNER_POST),
        "sender_name": "@admin",
        "team_id": "49ck75z1figmpjy6eknrohsjnw",
    },
    "broadcast": {"user_id": "", "channel_id": "amtak96j3br5iyokgunmf188jc"},
    "seq": 7,
})

HELLO = json.dumps({
    "event": "hello",
    "data": {"server_version": "5.18.0"},
    "broadcast": {"user_id": "botuserid"},
    "seq": 0,
})

FAIL = json.dumps({
    "status": "FAIL",
    "error": {
        "id": "api.web_socket_router.bad_seq.app_error",
        "message": "Invalid sequence for WebSocket message.",
        "detailed_error": "",
        "status_code": 400,
    },
})


class TestDecodeEvent:
    def test_posted(self):
        event = decode_event(POSTED)
        assert event == Post(
            channel_id="amtak96j3br5iyokgunmf188jc",
            message="test",
            user_id="kh9859j8kir15dmxonsm8sxq1w",
            root_id="",
            parent_id="",
            id="ghkm74cqzbnjxr5dx638k73xqa",
            team_id="49ck75z1figmpjy6eknrohsjnw",
        )

    def test_post_edited(self):
        frame = json.dumps({"event": "post_edited", "data": {"post": json.dumps(INNER_POST)}})
        event = decode_event(frame)
        assert isinstance(event, PostEdited)
        assert event.message == "test"

    def test_hello(self):
        assert decode_event(HELLO) == Hello(server_string="5.18.0", my_user_id="botuserid")

    def test_status_ok(self):
        assert decode_event('{"status": "OK", "seq_reply": 1}') == Status(code=StatusCode.OK)

    def test_status_fail(self):
        event = decode_event(FAIL)
        assert event.code == StatusCode.ERROR
        assert event.error.message == "Invalid sequence for WebSocket message."
        assert event.error.status_code == 400

    def test_status_other(self):
        assert decode_event('{"status": "MAYBE"}').code == StatusCode.UNSUPPORTED

    def test_invalid_posted_is_unsupported(self):
        raw = '{"event": "posted", "data": {"invalid": "invalid"}}'
        assert decode_event(raw) == Unsupported(raw)

    def test_unknown_event(self):
        raw = '{"event": "typing", "data": {}}'
        assert decode_event(raw) == Unsupported(raw)

    def test_not_json(self):
        assert decode_event("not json") == Unsupported("not json")


class TestFormatTriggerList:
    def test_table(self):
        text = format_trigger_list([Trigger("hi", text="hello"), Trigger("beer", emoji="beers")])
        assert text.splitlines() == [
            "| Trigger | Reaction |",
            "| --- | --- |",
            "| hi | hello |",
            "| beer | :beers: |",
        ]


@pytest.fixture
def config():
    return MattermostConfig(
        name="testbot",
        api_url="https://chat.example.com/",
        ws_url="wss://chat.example.com/api/v4/websocket",
        token="secret-token",
        debug_channel="debugchan",
    )


def make_client(config, responder):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/api/v4/users/me":
            return httpx.Response(200, json={"id": "botuserid"})
        return responder(request)

    client = MattermostClient(config, transport=httpx.MockTransport(handler))
    return client, requests


def ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"id": "new"})


class TestMattermostClient:
    async def test_start_fetches_me(self, config):
        client, requests = make_client(config, ok)
        await client.start()
        assert client.me == "botuserid"
        assert requests[0].headers["Authorization"] == "Bearer secret-token"
        await client.stop()

    async def test_reply_threads_on_root(self, config):
        client, requests = make_client(config, ok)
        await client.start()
        await client.reply(Post(channel_id="c", id="p1", root_id="r0"), "hello")
        await client.reply(Post(channel_id="c", id="p2"), "again")
        await client.stop()

        bodies = [json.loads(r.content) for r in requests[1:]]
        assert bodies[0] == {"channel_id": "c", "message": "hello", "root_id": "r0"}
        assert bodies[1]["root_id"] == "p2"
        assert requests[1].url.path == "/api/v4/posts"

    async def test_reaction(self, config):
        client, requests = make_client(config, ok)
        await client.start()
        await client.reaction(Post(id="p1"), "ok_hand")
        await client.stop()

        assert requests[1].url.path == "/api/v4/reactions"
        assert json.loads(requests[1].content) == {
            "user_id": "botuserid",
            "post_id": "p1",
            "emoji_name": "ok_hand",
        }

    async def test_debug_and_startup_go_to_debug_channel(self, config):
        client, requests = make_client(config, ok)
        await client.start()
        await client.debug("error: boom")
        await client.startup("## Loaded middlewares\n")
        await client.stop()

        debug, startup = (json.loads(r.content) for r in requests[1:])
        assert debug["channel_id"] == "debugchan"
        assert debug["message"] == "error: boom"
        assert startup["message"].startswith("bot testbot is up\n")

    async def test_send_trigger_list(self, config):
        client, requests = make_client(config, ok)
        await client.start()
        await client.send_trigger_list([Trigger("hi", text="hello")], Post(channel_id="c", id="p"))
        await client.stop()

        assert "| hi | hello |" in json.loads(requests[1].content)["message"]

    async def test_status_error(self, config):
        client, _ = make_client(config, lambda r: httpx.Response(403, json={"message": "no"}))
        await client.start()
        with pytest.raises(BackendStatusError) as exc:
            await client.debug("x")
        assert exc.value.status_code == 403
        await client.stop()

    async def test_body_error(self, config):
        client, _ = make_client(config, lambda r: httpx.Response(200, content=b"<html>"))
        await client.start()
        with pytest.raises(BackendBodyError):
            await client.debug("x")
        await client.stop()

    async def test_timeout(self, config):
        def slow(request):
            raise httpx.ReadTimeout("too slow", request=request)

        client, _ = make_client(config, slow)
        await client.start()
        with pytest.raises(BackendTimeout):
            await client.debug("x")
        await client.stop()

    async def test_transport_error(self, config):
        def refused(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_client(config, refused)
        await client.start()
        with pytest.raises(BackendError):
            await client.debug("x")
        await client.stop()


class TestMattermostListener:
    async def test_feeds_queue_then_closes(self, config):
        challenges = []

        async def ws_handler(request):
            ws = web.WebSocketResponse()
            await ws.prepare(request)
            challenges.append(await ws.receive_json())
            await ws.send_str(HELLO)
            await ws.send_str(POSTED)
            await ws.close()
            return ws

        app = web.Application()
        app.router.add_get("/ws", ws_handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            config.ws_url = str(server.make_url("/ws"))
            queue = EventQueue()
            await MattermostListener(config, queue).listen()
        finally:
            await server.close()

        assert challenges == [{
            "seq": 1,
            "action": "authentication_challenge",
            "data": {"token": "secret-token"},
        }]
        assert isinstance(await queue.get(timeout=1), Hello)
        assert (await queue.get(timeout=1)).message == "test"
        with pytest.raises(QueueClosed):
            await queue.get(timeout=1)

    async def test_connection_failure_closes_queue(self, config):
        config.ws_url = "http://127.0.0.1:1/ws"
        queue = EventQueue()
        await MattermostListener(config, queue).listen()
        assert queue.closed

    async def test_connect_timeout_is_logged(self, config, monkeypatch):
        def timed_out(self, *args, **kwargs):
            raise TimeoutError("connect timed out")

        monkeypatch.setattr(aiohttp.ClientSession, "ws_connect", timed_out)
        queue = EventQueue()
        with capture_logs() as logs:
            await MattermostListener(config, queue).listen()

        assert queue.closed
        errors = [e for e in logs if e["event"] == "mattermost_listener_error"]
        assert errors and errors[0]["url"] == config.ws_url
