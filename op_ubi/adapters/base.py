"""
Adapter base — the capability contracts between services and tools.

The resolver and the install orchestrator only talk to the outside
world through these three interfaces.  Each has one production
implementation (``op``, GitHub, ``ubi``) and a fake in
``op_ubi.adapters.mock`` for tests.

Unlike a fire-and-forget adapter, these raise: a classified
``OpUbiError`` is the structured result across the boundary, and the
services propagate it untouched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from op_ubi.core.models.command import CommandResult
from op_ubi.core.models.secret import Token


class Availability(BaseModel):
    """Outcome of a backend availability check."""

    ok: bool
    kind: Literal["ok", "missing", "unauthenticated", "error"] = "ok"
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def available(cls) -> Availability:
        return cls(ok=True)

    @classmethod
    def missing(cls, reason: str) -> Availability:
        return cls(ok=False, kind="missing", reason=reason)

    @classmethod
    def unauthenticated(cls, reason: str) -> Availability:
        return cls(ok=False, kind="unauthenticated", reason=reason)


class Adapter(ABC):
    """Common surface: a name and a cheap availability check."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'op', 'github', 'ubi')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool or service is reachable.

        Should be fast and never raise.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class CredentialProvider(Adapter):
    """Retrieves secrets from a credential backend."""

    @abstractmethod
    def availability(self, account: str | None = None) -> Availability:
        """Distinguish "backend missing" from "backend not signed in"."""

    def is_available(self) -> bool:
        return self.availability().ok

    @abstractmethod
    def fetch_token(self, reference: str, account: str | None = None) -> Token:
        """Read the secret at ``reference``.

        Checks availability first and fails fast.

        Raises:
            CredentialUnavailable, CredentialUnauthenticated,
            CredentialNotFound, CredentialInvalid
        """


class ReleaseRegistry(Adapter):
    """Lists published release tags for a repository."""

    @abstractmethod
    def fetch_versions(self, repo: str, token: Token) -> list[str]:
        """Return normalized versions, newest first as the registry orders them.

        Raises:
            RemoteRateLimited, RemoteAuthFailed, RemoteNotFound,
            RemoteMalformed, NoVersionsFound
        """


class Installer(Adapter):
    """Downloads a release's binaries into a directory."""

    @abstractmethod
    def install(self, repo: str, tag: str, bin_path: Path, token: Token) -> CommandResult:
        """Run one installation attempt.

        Failures are reported in the returned CommandResult, not raised:
        the orchestrator decides whether to try another tag.
        """
