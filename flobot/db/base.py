"""Trigger persistence interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from flobot.models import Trigger


class DatabaseError(Exception):
    pass


class TriggerStore(ABC):
    """Triggers are scoped by team. All methods raise ``DatabaseError`` on failure."""

    @abstractmethod
    async def list(self, team_id: str) -> list[Trigger]: ...

    @abstractmethod
    async def search(self, team_id: str) -> list[Trigger]:
        """Triggers to match against a message, text triggers first."""

    @abstractmethod
    async def add_text(self, team_id: str, trigger: str, text: str) -> None: ...

    @abstractmethod
    async def add_emoji(self, team_id: str, trigger: str, emoji: str) -> None: ...

    @abstractmethod
    async def delete(self, team_id: str, trigger: str) -> None: ...
