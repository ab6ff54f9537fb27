"""
GitHub release registry — lists release tags via the REST API.

    GET {api_url}/repos/{owner}/{name}/releases?per_page=100

Failures are classified from the HTTP status and the JSON ``message``
field GitHub returns with every error, never from free text alone.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any

from op_ubi.adapters.base import ReleaseRegistry
from op_ubi.core.errors import (
    NoVersionsFound,
    RemoteAuthFailed,
    RemoteError,
    RemoteMalformed,
    RemoteNotFound,
    RemoteRateLimited,
    RemoteUnavailable,
)
from op_ubi.core.models.secret import Token
from op_ubi.core.models.version import normalize

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "mise-op-ubi/1.0"
PER_PAGE = 100
MAX_PAGES = 10

_NEXT_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="next"')


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the ``rel="next"`` URL from a Link header."""
    if not link_header:
        return None
    match = _NEXT_LINK_RE.search(link_header)
    return match.group(1) if match else None


def parse_versions(releases: Any) -> list[str]:
    """Extract normalized versions from a decoded releases listing.

    Drafts and entries without a ``tag_name`` are skipped.

    Raises:
        RemoteMalformed: If ``releases`` is not a list.
    """
    if not isinstance(releases, list):
        raise RemoteMalformed("GitHub API response is not a valid array")

    versions: list[str] = []
    for release in releases:
        if not isinstance(release, dict) or release.get("draft"):
            continue
        tag = release.get("tag_name")
        if isinstance(tag, str) and tag.strip():
            versions.append(normalize(tag))
    return versions


class GitHubReleaseRegistry(ReleaseRegistry):
    """ReleaseRegistry backed by GitHub (or GitHub Enterprise).

    Args:
        api_url: API root, e.g. ``https://github.example.com/api/v3``.
        timeout: Per-request timeout in seconds.
        urlopen: Replacement for ``urllib.request.urlopen`` (tests).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 15,
        urlopen: Callable[..., Any] | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._urlopen = urlopen

    @property
    def name(self) -> str:
        return "github"

    def is_available(self) -> bool:
        # Reachability needs a token; the real check happens on fetch
        return True

    def releases_url(self, repo: str) -> str:
        return f"{self._api_url}/repos/{repo}/releases?per_page={PER_PAGE}"

    def fetch_versions(self, repo: str, token: Token) -> list[str]:
        url: str | None = self.releases_url(repo)
        versions: list[str] = []
        pages = 0

        while url and pages < MAX_PAGES:
            releases, url = self._get_page(url, repo, token)
            versions.extend(parse_versions(releases))
            pages += 1

        if url:
            logger.warning("Stopped after %d pages of releases for %s", MAX_PAGES, repo)

        if not versions:
            raise NoVersionsFound(
                "No versions found in GitHub releases for this repository",
                context={"repo": repo},
            )

        logger.info("Fetched %d versions for %s from GitHub", len(versions), repo)
        return versions

    # ── HTTP ─────────────────────────────────────────────────────

    def _get_page(self, url: str, repo: str, token: Token) -> tuple[Any, str | None]:
        """Fetch one page.  Returns (decoded body, next page URL)."""
        req = urllib.request.Request(
            url,
            headers={
                "Authorization": f"Bearer {token.reveal()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            },
        )
        opener = self._urlopen or urllib.request.urlopen
        logger.debug("GET %s", url)

        try:
            with opener(req, timeout=self._timeout) as resp:
                raw = resp.read()
                headers = resp.headers
        except urllib.error.HTTPError as e:
            raise self._classify_http_error(e, repo) from None
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise RemoteUnavailable(
                f"Failed to query GitHub API: {e}",
                context={"repo": repo, "url": url},
            ) from None

        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise RemoteMalformed(
                f"Failed to parse GitHub API response as JSON: {e}",
                context={"repo": repo, "url": url},
            ) from None

        # Some proxies answer 200 with an error document
        if isinstance(data, dict) and "message" in data:
            raise self._classify(200, str(data.get("message", "")), {}, repo)

        return data, parse_next_link(headers.get("Link") if headers else None)

    def _classify_http_error(self, err: urllib.error.HTTPError, repo: str) -> RemoteError:
        message = ""
        try:
            body = json.loads(err.read() or b"{}")
            if isinstance(body, dict):
                message = str(body.get("message", ""))
        except (ValueError, OSError):
            pass
        headers = dict(err.headers or {})
        return self._classify(err.code, message or str(err.reason), headers, repo)

    def _classify(
        self,
        status: int,
        message: str,
        headers: dict[str, str],
        repo: str,
    ) -> RemoteError:
        """Map an HTTP status + GitHub error message to the taxonomy."""
        lowered = message.lower()
        remaining = {k.lower(): v for k, v in headers.items()}.get("x-ratelimit-remaining")
        context = {"repo": repo, "status": status, "message": message}

        if status == 429 or "rate limit" in lowered or (status == 403 and remaining == "0"):
            return RemoteRateLimited(
                "GitHub API rate limit exceeded. "
                "Wait before retrying or use a token with higher limits.",
                context=context,
            )
        if status in (401, 403) or "bad credentials" in lowered:
            return RemoteAuthFailed(
                "GitHub authentication failed. "
                "Check that your token is valid and not expired.",
                context=context,
            )
        if status == 404 or lowered == "not found":
            return RemoteNotFound(
                f"Repository not found: {repo}. "
                "Check that the repository exists and your token has access to it.",
                context=context,
            )
        if status >= 500:
            return RemoteUnavailable(
                f"GitHub API unavailable (HTTP {status}): {message}",
                context=context,
            )
        return RemoteMalformed(
            f"Unexpected GitHub API response (HTTP {status}): {message}",
            context=context,
        )
