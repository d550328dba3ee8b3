"""Expiring key presence store used for anti-spam windows."""

from __future__ import annotations

import threading
import time
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)

Clock = Callable[[], float]


class Tempo(Generic[K]):
    """Store keys with a time to live and check whether they are still alive.

    There is no self-cleaning: an entry is only removed when it is looked up
    after its expiry, so this is not meant for large amounts of keys.

    Handles returned by ``clone()`` share the same underlying map and lock,
    which is how a store is handed to another thread or component::

        tempo = Tempo()
        tempo.set("try", 1.0)
        assert tempo.exists("try")

        other = tempo.clone()
        tempo.set("cloned", 1.0)
        assert other.exists("cloned")
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._store: dict[K, float] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def clone(self) -> Tempo[K]:
        other: Tempo[K] = Tempo.__new__(Tempo)
        other._store = self._store
        other._lock = self._lock
        other._clock = self._clock
        return other

    __copy__ = clone

    def set(self, key: K, ttl: float) -> None:
        """Insert or overwrite ``key`` so that it expires ``ttl`` seconds from now."""
        expires_at = self._clock() + ttl
        with self._lock:
            self._store[key] = expires_at

    def exists(self, key: K) -> bool:
        """True if ``key`` is set and not expired. Expired keys are dropped."""
        with self._lock:
            expires_at = self._store.get(key)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._store[key]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
