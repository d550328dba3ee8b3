"""Decoding of Mattermost websocket frames into events."""

from __future__ import annotations

import json
from typing import Any

from flobot.models import (
    Event,
    Hello,
    Post,
    PostEdited,
    Status,
    StatusCode,
    StatusError,
    Unsupported,
)


def decode_event(raw: str) -> Event:
    """Turn one websocket text frame into an event. Never raises."""
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        return Unsupported(raw)
    if not isinstance(frame, dict):
        return Unsupported(raw)

    try:
        if "status" in frame:
            return _decode_status(frame)

        kind = frame.get("event")
        data = frame.get("data") or {}
        if kind == "hello":
            broadcast = frame.get("broadcast") or {}
            return Hello(
                server_string=str(data.get("server_version", "")),
                my_user_id=str(broadcast.get("user_id", "")),
            )
        if kind == "posted":
            post = _decode_post(data)
            return Post(team_id=str(data.get("team_id", "")), **post)
        if kind == "post_edited":
            return PostEdited(**_decode_post(data))
    except (KeyError, TypeError, ValueError):
        return Unsupported(raw)

    return Unsupported(raw)


def _decode_post(data: dict[str, Any]) -> dict[str, str]:
    # The post itself is a JSON document serialized inside the frame.
    post = json.loads(data["post"])
    return {
        "id": str(post["id"]),
        "channel_id": str(post["channel_id"]),
        "message": str(post.get("message", "")),
        "user_id": str(post["user_id"]),
        "root_id": str(post.get("root_id", "")),
        "parent_id": str(post.get("parent_id", "")),
    }


def _decode_status(frame: dict[str, Any]) -> Status:
    status = str(frame["status"])
    if "OK" in status:
        return Status(code=StatusCode.OK)
    if "FAIL" in status:
        details = frame.get("error") or {}
        error = StatusError(
            message=str(details.get("message", "none")),
            detailed_error=str(details.get("detailed_error", "")),
            request_id=details.get("request_id"),
            status_code=int(details.get("status_code", 0)),
        )
        return Status(code=StatusCode.ERROR, error=error)
    return Status(code=StatusCode.UNSUPPORTED)
