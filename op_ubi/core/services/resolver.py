"""
Version resolver — cache-aware answer to "which versions exist?".

Reading the GitHub token from 1Password costs around a second per
call, so the resolver serves from the version cache whenever doing so
cannot hide a version the user explicitly asked for.

Decision procedure, in order:

    1. force_refresh       → invalidate the cache entry
    2. entry fresh by age  → load the cached list
    3. cached + requested  → requested in list?  return cached (no token)
                             not in list?        fall through to refresh
    4. cached, no request  → return cached (bounded staleness accepted)
    5. full refresh        → token → registry → cache.put → return

Step 3's fall-through is the smart invalidation: a cache written before
a release must not make that release unresolvable.

A failure during the refresh propagates.  The stale list is not
served in its place.  If the refreshed list still lacks the requested
version, the new list is cached and VersionNotFound is raised.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from op_ubi.adapters.base import CredentialProvider, ReleaseRegistry
from op_ubi.core.config.loader import PluginConfig
from op_ubi.core.errors import VersionNotFound
from op_ubi.core.models.version import normalize, version_exists
from op_ubi.core.persistence.version_cache import VersionCache

logger = logging.getLogger(__name__)


class Resolution(BaseModel):
    """What the resolver answered and where the answer came from."""

    repo: str
    versions: list[str] = Field(default_factory=list)
    source: Literal["cache", "remote"] = "cache"
    requested_version: str | None = None
    smart_invalidated: bool = False     # fresh cache lacked the requested version

    @property
    def refreshed(self) -> bool:
        return self.source == "remote"

    @property
    def has_requested(self) -> bool:
        """Whether the requested version (if any) is in the answer."""
        if self.requested_version is None:
            return True
        return version_exists(self.versions, self.requested_version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "versions": self.versions,
            "repo": self.repo,
            "source": self.source,
            "refreshed": self.refreshed,
            "requested_version": self.requested_version,
            "smart_invalidated": self.smart_invalidated,
        }


class Resolver:
    """Orchestrates cache, credentials and registry for version listing.

    Args:
        config: Invocation settings (TTL, force refresh, token reference).
        cache: Version cache.
        credentials: Credential backend.
        registry: Release registry.
    """

    def __init__(
        self,
        config: PluginConfig,
        cache: VersionCache,
        credentials: CredentialProvider,
        registry: ReleaseRegistry,
    ):
        self._config = config
        self._cache = cache
        self._credentials = credentials
        self._registry = registry

    def resolve(
        self,
        repo: str,
        requested_version: str | None = None,
        *,
        cache_max_age_days: int | None = None,
        force_refresh: bool | None = None,
    ) -> Resolution:
        """Return the versions of ``repo``.

        ``cache_max_age_days`` and ``force_refresh`` default to the
        configured values.

        Raises:
            ConfigurationError: A refresh is needed but no token reference is set.
            CredentialError: The token could not be read.
            RemoteError: The registry call failed or listed nothing.
            VersionNotFound: The refreshed list lacks ``requested_version``.
        """
        max_age = self._config.cache_days if cache_max_age_days is None else cache_max_age_days
        force = self._config.force_refresh if force_refresh is None else force_refresh
        requested = requested_version.strip() if requested_version else None

        # 1. forced refresh drops the entry before anything reads it
        if force:
            logger.info("Force refresh requested for %s", repo)
            self._cache.invalidate(repo)

        # 2. age-based freshness
        cached: list[str] | None = None
        if self._cache.is_fresh(repo, max_age):
            entry = self._cache.get(repo)
            cached = entry.versions if entry else None

        smart_invalidated = False
        if cached is not None:
            if requested is None:
                # 4. no explicit version: staleness within the TTL is fine
                logger.debug("Cache hit for %s (%d versions)", repo, len(cached))
                return Resolution(repo=repo, versions=cached, source="cache")

            # 3. explicit version: only trust the cache if it contains it
            if version_exists(cached, requested):
                logger.debug("Cache hit for %s@%s", repo, normalize(requested))
                return Resolution(
                    repo=repo,
                    versions=cached,
                    source="cache",
                    requested_version=requested,
                )

            logger.info(
                "Version %s of %s not in cache; refreshing from registry",
                normalize(requested),
                repo,
            )
            smart_invalidated = True

        # 5. full refresh
        versions = self._refresh(repo)
        if requested is not None and not version_exists(versions, requested):
            raise VersionNotFound(
                f"Version {normalize(requested)} not found in releases of {repo}",
                hint=f"Available versions: {', '.join(versions[:10])}",
                context={
                    "repo": repo,
                    "requested_version": requested,
                    "smart_invalidated": smart_invalidated,
                },
            )

        return Resolution(
            repo=repo,
            versions=versions,
            source="remote",
            requested_version=requested,
            smart_invalidated=smart_invalidated,
        )

    def _refresh(self, repo: str) -> list[str]:
        """Fetch a token, list releases and rewrite the cache entry."""
        reference = self._config.require_token_reference()
        token = self._credentials.fetch_token(reference, self._config.resolve_account())
        versions = self._registry.fetch_versions(repo, token)

        try:
            self._cache.put(repo, versions)
        except OSError as e:
            # Unwritable cache: answer anyway, the next call refreshes again
            logger.warning("Cannot write version cache for %s: %s", repo, e)

        return versions
