"""
Version cache — durable per-repository version lists.

Layout, one directory, two documents per repository:

    <owner>-<name>-versions.json   JSON list of normalized versions
    <owner>-<name>-timestamp       epoch seconds, then a sha256 of the
                                   versions document on the next line

Each document is written atomically (temp file + rename).  The versions
document is written first and the timestamp last; the digest ties the
pair together, so a reader never sees a list from one write paired with
a timestamp from another.

Every read anomaly (missing file, bad JSON, bad number, missing or
mismatched digest) is a cache miss.  Nothing in here raises on read.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import sys
import tempfile
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from op_ubi.core.errors import CacheCorrupt
from op_ubi.core.models.cache import CacheEntry
from op_ubi.core.models.version import repo_from_key, sanitize_repo

logger = logging.getLogger(__name__)

CACHE_SUBDIR = "op-ubi"
VERSIONS_SUFFIX = "-versions.json"
TIMESTAMP_SUFFIX = "-timestamp"


def default_cache_dir(
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> Path:
    """Resolve the cache directory the way mise lays out plugin caches.

    MISE_CACHE_DIR wins; otherwise the platform's user cache directory.
    """
    env = os.environ if environ is None else environ
    platform = platform or sys.platform

    base = env.get("MISE_CACHE_DIR")
    if base:
        return Path(base) / CACHE_SUBDIR

    home = Path(env.get("HOME") or Path.home())
    if platform.startswith("win"):
        local = env.get("LOCALAPPDATA")
        root = Path(local) if local else home / "AppData" / "Local"
        return root / "mise" / "cache" / CACHE_SUBDIR
    if platform == "darwin":
        return home / "Library" / "Caches" / "mise" / CACHE_SUBDIR

    xdg = env.get("XDG_CACHE_HOME")
    root = Path(xdg) if xdg else home / ".cache"
    return root / "mise" / CACHE_SUBDIR


def _digest(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class VersionCache:
    """File-backed CacheStore.

    Args:
        cache_dir: Directory holding the cache documents.
        clock: Returns the current epoch time (injectable for tests).
    """

    def __init__(
        self,
        cache_dir: Path | str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._dir = Path(cache_dir) if cache_dir else default_cache_dir()
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._dir

    def versions_path(self, repo: str) -> Path:
        return self._dir / f"{sanitize_repo(repo)}{VERSIONS_SUFFIX}"

    def timestamp_path(self, repo: str) -> Path:
        return self._dir / f"{sanitize_repo(repo)}{TIMESTAMP_SUFFIX}"

    # ── Reads ────────────────────────────────────────────────────

    def get(self, repo: str) -> CacheEntry | None:
        """Load the cached entry for ``repo``, or None on any anomaly."""
        return self._load(sanitize_repo(repo), repo)

    def _load(self, key: str, repo: str) -> CacheEntry | None:
        versions_file = self._dir / f"{key}{VERSIONS_SUFFIX}"
        timestamp_file = self._dir / f"{key}{TIMESTAMP_SUFFIX}"

        if not versions_file.is_file() or not timestamp_file.is_file():
            if versions_file.exists() != timestamp_file.exists():
                self._corrupt(repo, "only one of versions/timestamp present")
            return None

        try:
            raw_versions = versions_file.read_text(encoding="utf-8")
            raw_stamp = timestamp_file.read_text(encoding="utf-8")
        except OSError as e:
            self._corrupt(repo, f"unreadable: {e}")
            return None

        stamp_lines = raw_stamp.split()
        if not stamp_lines:
            self._corrupt(repo, "empty timestamp")
            return None

        try:
            timestamp = int(float(stamp_lines[0]))
        except ValueError:
            self._corrupt(repo, f"bad timestamp {stamp_lines[0]!r}")
            return None

        if len(stamp_lines) < 2:
            self._corrupt(repo, "timestamp carries no digest")
            return None
        if stamp_lines[1] != _digest(raw_versions):
            self._corrupt(repo, "timestamp does not match versions document")
            return None

        try:
            data = json.loads(raw_versions)
        except json.JSONDecodeError as e:
            self._corrupt(repo, f"bad JSON: {e}")
            return None

        if (
            not isinstance(data, list)
            or not data
            or not all(isinstance(v, str) for v in data)
        ):
            self._corrupt(repo, "versions document is not a non-empty list of strings")
            return None

        return CacheEntry(repo=repo, versions=data, timestamp=timestamp)

    def is_fresh(self, repo: str, max_age_days: float) -> bool:
        """Whether a complete entry exists and is younger than the TTL."""
        entry = self.get(repo)
        if entry is None:
            return False
        fresh = entry.is_fresh(max_age_days, now=self._clock())
        logger.debug(
            "Cache for %s is %s (age %ds, ttl %sd)",
            repo,
            "fresh" if fresh else "stale",
            int(entry.age_seconds(self._clock())),
            max_age_days,
        )
        return fresh

    def entries(self) -> list[dict[str, Any]]:
        """Summaries of every readable entry, for display."""
        if not self._dir.is_dir():
            return []

        now = self._clock()
        out: list[dict[str, Any]] = []
        for versions_file in sorted(self._dir.glob(f"*{VERSIONS_SUFFIX}")):
            key = versions_file.name[: -len(VERSIONS_SUFFIX)]
            repo = repo_from_key(key)
            entry = self._load(key, repo)
            if entry is None:
                continue
            out.append({
                "key": key,
                "repo": repo,
                "versions": len(entry.versions),
                "latest": entry.versions[0],
                "timestamp": entry.timestamp,
                "age_seconds": int(entry.age_seconds(now)),
            })
        return out

    # ── Writes ───────────────────────────────────────────────────

    def put(self, repo: str, versions: list[str]) -> CacheEntry:
        """Persist ``versions`` for ``repo`` stamped with the current time.

        Raises:
            ValueError: If ``versions`` is empty (empty lists are never cached).
            OSError: If the cache directory cannot be written.
        """
        if not versions:
            raise ValueError(f"Refusing to cache an empty version list for {repo}")

        self._dir.mkdir(parents=True, exist_ok=True)

        content = json.dumps(list(versions), indent=2, ensure_ascii=False) + "\n"
        timestamp = int(self._clock())
        stamp = f"{timestamp}\n{_digest(content)}\n"

        self._atomic_write(self.versions_path(repo), content)
        self._atomic_write(self.timestamp_path(repo), stamp)

        logger.debug("Cached %d versions for %s", len(versions), repo)
        return CacheEntry(repo=repo, versions=list(versions), timestamp=timestamp)

    def invalidate(self, repo: str) -> None:
        """Remove both documents for ``repo``.  Missing files are fine."""
        # Timestamp first: a reader racing us sees "absent", never a lone list
        for path in (self.timestamp_path(repo), self.versions_path(repo)):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Cannot remove cache file %s: %s", path, e)
        logger.debug("Invalidated cache for %s", repo)

    def clear(self) -> int:
        """Remove every cache document.  Returns the number of files removed."""
        if not self._dir.is_dir():
            return 0
        removed = 0
        for pattern in (f"*{TIMESTAMP_SUFFIX}", f"*{VERSIONS_SUFFIX}"):
            for path in self._dir.glob(pattern):
                try:
                    path.unlink()
                    removed += 1
                except OSError as e:
                    logger.warning("Cannot remove cache file %s: %s", path, e)
        return removed

    # ── Internals ────────────────────────────────────────────────

    def _atomic_write(self, path: Path, content: str) -> None:
        """Write-to-temp-then-rename in the target directory."""
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".op-ubi_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

    def _corrupt(self, repo: str, reason: str) -> None:
        err = CacheCorrupt(f"Ignoring cache for {repo}: {reason}", context={"repo": repo})
        logger.warning("%s", err.message)
