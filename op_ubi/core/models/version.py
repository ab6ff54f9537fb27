"""
Version and repository identifiers.

Registries publish tags with or without a leading ``v``.  Every
comparison in the plugin goes through :func:`normalize` so that
``v1.2.3`` and ``1.2.3`` are the same version on either side.
"""

from __future__ import annotations

import re
import urllib.parse
from collections.abc import Iterable

from op_ubi.core.errors import ConfigurationError

_REPO_RE = re.compile(r"^[^/\s]+/[^/\s]+$")


def normalize(version: str) -> str:
    """Strip leading ``v``s from a version tag.  Idempotent."""
    return version.strip().lstrip("v")


def version_exists(versions: Iterable[str], target: str) -> bool:
    """Whether ``target`` is in ``versions``, comparing normalized forms."""
    wanted = normalize(target)
    return any(normalize(v) == wanted for v in versions)


def validate_repo(repo: str) -> str:
    """Check that ``repo`` looks like ``owner/name`` and return it.

    Raises:
        ConfigurationError: If the identifier is malformed.
    """
    repo = (repo or "").strip()
    if not _REPO_RE.match(repo):
        raise ConfigurationError(
            f"Invalid tool format. Expected 'owner/repo', got: {repo!r}",
            context={"repo": repo},
        )
    return repo


def sanitize_repo(repo: str) -> str:
    """Filesystem-safe, reversible form of a repository identifier.

    ``acme/widget`` becomes ``acme-widget``.  Characters that could make
    two identifiers collide (``-``, ``%``, ``\\``) are percent-escaped
    first, so ``a-b/c`` and ``a/b-c`` get distinct keys.
    """
    return urllib.parse.quote(repo, safe="/").replace("-", "%2D").replace("/", "-")


def repo_from_key(key: str) -> str:
    """Inverse of :func:`sanitize_repo`."""
    return urllib.parse.unquote(key.replace("-", "/"))
