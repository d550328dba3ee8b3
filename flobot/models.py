"""Typed chat events and records exchanged between the backend and the core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class Hello:
    server_string: str
    my_user_id: str


@dataclass(frozen=True)
class Post:
    channel_id: str = ""
    message: str = ""
    user_id: str = ""
    root_id: str = ""
    parent_id: str = ""
    id: str = ""
    team_id: str = ""

    @classmethod
    def with_message(cls, message: str) -> Post:
        return cls(message=message)


@dataclass(frozen=True)
class PostEdited:
    channel_id: str = ""
    message: str = ""
    user_id: str = ""
    root_id: str = ""
    parent_id: str = ""
    id: str = ""


class StatusCode(str, Enum):
    OK = "ok"
    ERROR = "error"
    UNKNOWN = "unknown"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class StatusError:
    message: str
    detailed_error: str = ""
    request_id: str | None = None
    status_code: int = 0

    @classmethod
    def none(cls) -> StatusError:
        """Placeholder for a failing status that came without an error body."""
        return cls(message="none")


@dataclass(frozen=True)
class Status:
    code: StatusCode
    error: StatusError | None = None


@dataclass(frozen=True)
class Unsupported:
    raw: str


@dataclass(frozen=True)
class Shutdown:
    """Asks the event loop to return cleanly."""


Event = Union[Hello, Post, PostEdited, Status, Unsupported, Shutdown]


@dataclass(frozen=True)
class Trigger:
    triggered_by: str
    text: str | None = None
    emoji: str | None = None

    def describe(self) -> str:
        """What the trigger answers with, as shown in listings."""
        if self.text is not None:
            return self.text
        if self.emoji is not None:
            return f":{self.emoji}:"
        return ""
