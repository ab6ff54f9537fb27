"""
CacheEntry — a version list paired with the time it was fetched.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field

SECONDS_PER_DAY = 86400


class CacheEntry(BaseModel):
    """One repository's cached version list.

    The list and the timestamp are only ever produced together; the
    store treats a half-present entry as absent.
    """

    repo: str
    versions: list[str] = Field(default_factory=list)
    timestamp: int = 0                # Unix epoch seconds

    def age_seconds(self, now: float | None = None) -> float:
        """Seconds since the entry was written."""
        return (time.time() if now is None else now) - self.timestamp

    def is_fresh(self, max_age_days: float, now: float | None = None) -> bool:
        """Whether the entry is younger than ``max_age_days``."""
        return self.age_seconds(now) < max_age_days * SECONDS_PER_DAY
