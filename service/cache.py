"""In-process response cache keyed by language and normalized question."""

from __future__ import annotations

import logging
from collections import OrderedDict

from core.config import settings
from core.models import CacheEntry

logger = logging.getLogger(__name__)


def cache_key(language: str, question: str) -> str:
    return f"{language}::{(question or '').strip().lower()}"


class ResponseCache:
    """Exact-match answer cache with least-recently-used eviction.

    Entries never expire; the oldest unused entry is dropped once
    ``max_entries`` is exceeded.
    """

    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries or settings.cache_max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, language: str, question: str) -> CacheEntry | None:
        key = cache_key(language, question)
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
            logger.debug("Cache hit: %s", key)
        return entry

    def put(self, language: str, question: str, entry: CacheEntry) -> None:
        key = cache_key(language, question)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evicted: %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
