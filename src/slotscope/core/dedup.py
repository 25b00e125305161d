"""Notification deduplication (core domain).

The cache is memory-resident and lives for the whole process. Entries are
keyed by the probed page URL, the natural identity of a bookable instance.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class NotificationDedupCache:
    """Suppress repeat notifications for the same key within a cooldown."""

    def __init__(
        self,
        cooldown_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._sent_at: dict[str, float] = {}

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    def __len__(self) -> int:
        return len(self._sent_at)

    def __contains__(self, key: object) -> bool:
        return key in self._sent_at

    def age(self, key: str) -> Optional[float]:
        """Return seconds since the last send for ``key``, if any."""

        sent_at = self._sent_at.get(key)
        if sent_at is None:
            return None
        return self._clock() - sent_at

    def can_send(self, key: str) -> bool:
        age = self.age(key)
        return age is None or age >= self._cooldown

    def record_sent(self, key: str) -> None:
        self._sent_at[key] = self._clock()

    def forget(self, key: str) -> None:
        """Drop the entry for ``key`` so the next attempt may send again."""

        self._sent_at.pop(key, None)

    def cleanup(self) -> int:
        """Remove expired entries and return how many were removed."""

        now = self._clock()
        expired = [key for key, sent_at in self._sent_at.items() if now - sent_at >= self._cooldown]
        for key in expired:
            del self._sent_at[key]

        if expired:
            LOGGER.info("Dedup cleanup removed %s expired notification records", len(expired))
        return len(expired)
