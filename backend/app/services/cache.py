from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable

from sqlalchemy import event
from sqlalchemy.orm import Session

from app.core.settings import settings

logger = logging.getLogger("psiconnect.cache")


class TTLCache:
    """Per-process read cache with a time bound and an LRU size bound.

    Entries are only a latency shortcut: every write path that changes the
    underlying rows must call ``invalidate`` for the affected key.
    """

    def __init__(
        self,
        *,
        name: str,
        ttl_seconds: float,
        max_entries: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        if not entry:
            return None
        timestamp, value = entry
        if (self._clock() - timestamp) > self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache=%s hit key=%s", self.name, key)
            return cached
        value = loader()
        self.set(key, value)
        logger.debug("cache=%s miss key=%s", self.name, key)
        return value

    def invalidate(self, key: Hashable, reason: str) -> None:
        dropped = [k for k in self._entries if k == key or (isinstance(k, tuple) and k[:1] == (key,))]
        for k in dropped:
            self._entries.pop(k, None)
        logger.debug("cache=%s invalidate key=%s reason=%s dropped=%d", self.name, key, reason, len(dropped))

    def clear(self) -> None:
        self._entries.clear()


patient_list_cache = TTLCache(name="patients", ttl_seconds=settings.patient_cache_ttl_seconds)
appointment_list_cache = TTLCache(
    name="appointments", ttl_seconds=settings.appointment_cache_ttl_seconds
)


_PENDING_KEY = "pending_cache_invalidations"


def invalidate_on_commit(db: Session, cache: TTLCache, key: Hashable, reason: str) -> None:
    """Drop ``key`` from ``cache`` once ``db`` commits; a rollback discards it."""
    db.info.setdefault(_PENDING_KEY, []).append((cache, key, reason))


@event.listens_for(Session, "after_commit")
def _apply_pending_invalidations(session: Session) -> None:
    for cache, key, reason in session.info.pop(_PENDING_KEY, []):
        cache.invalidate(key, reason)


@event.listens_for(Session, "after_rollback")
def _discard_pending_invalidations(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)


def invalidate_patients(db: Session, practitioner_id: int, reason: str) -> None:
    invalidate_on_commit(db, patient_list_cache, practitioner_id, reason)


def invalidate_appointments(db: Session, practitioner_id: int, reason: str) -> None:
    invalidate_on_commit(db, appointment_list_cache, practitioner_id, reason)


def clear_all() -> None:
    patient_list_cache.clear()
    appointment_list_cache.clear()
