"""Persistence for triggers."""

from .base import DatabaseError, TriggerStore
from .sqlite import SqliteTriggerStore

__all__ = ["DatabaseError", "SqliteTriggerStore", "TriggerStore"]
