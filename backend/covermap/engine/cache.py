"""Result cache + generation guard: the only mutable state shared across analyses."""

from __future__ import annotations

import logging

from covermap.engine.errors import SupersededError
from covermap.models.coverage import BatchResult

logger = logging.getLogger(__name__)

CacheKey = tuple[str, int]


class ResultCache:
    """Most recent completed batch per (service endpoint, layer id).

    Entries are inserted whole and never mutated, so readers can never see
    a partially built result.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, tuple] = {}

    def get(self, key: CacheKey) -> BatchResult | None:
        entry = self._entries.get(key)
        return list(entry) if entry is not None else None

    def put(self, key: CacheKey, result: BatchResult) -> None:
        self._entries[key] = tuple(result)
        logger.debug("Cached %d results for %s layer %d", len(result), key[0], key[1])

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class GenerationGuard:
    """Monotonic analysis counter. Work started under an old token is discarded, not cancelled."""

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def new_generation(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    def check(self, token: int | None) -> None:
        """Raise SupersededError if ``token`` is stale. ``None`` means unguarded."""
        if token is not None and token != self._current:
            raise SupersededError(token, self._current)
