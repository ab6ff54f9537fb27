"""
Mock adapters — test doubles for every capability.

Used in tests to simulate the credential backend, the release registry
and the installer without touching external tools.
Each records its calls so tests can assert exactly how often the slow
collaborators were hit.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from op_ubi.adapters.base import (
    Availability,
    CredentialProvider,
    Installer,
    ReleaseRegistry,
)
from op_ubi.core.errors import NoVersionsFound, OpUbiError, RemoteNotFound
from op_ubi.core.models.command import CommandResult
from op_ubi.core.models.secret import Token
from op_ubi.core.models.version import normalize

DEFAULT_MOCK_TOKEN = "ghp_mocktoken0123456789abcdef"


class MockCredentialProvider(CredentialProvider):
    """CredentialProvider that hands out a fixed token.

    By default it is available and succeeds.  Configure a failure with
    ``set_failure`` or an unavailable backend with ``availability_result``.
    """

    def __init__(
        self,
        token: str = DEFAULT_MOCK_TOKEN,
        availability_result: Availability | None = None,
    ):
        self._token = token
        self._availability = availability_result or Availability.available()
        self._failure: OpUbiError | None = None
        self._call_log: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "mock-credentials"

    @property
    def call_log(self) -> list[dict[str, Any]]:
        """Every fetch_token call's arguments."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def availability(self, account: str | None = None) -> Availability:
        return self._availability

    def set_failure(self, error: OpUbiError) -> None:
        """Make every subsequent fetch raise ``error``."""
        self._failure = error

    def fetch_token(self, reference: str, account: str | None = None) -> Token:
        self._call_log.append({"reference": reference, "account": account})
        if self._failure is not None:
            raise self._failure
        return Token(self._token)

    def reset(self) -> None:
        self._call_log.clear()
        self._failure = None


class MockReleaseRegistry(ReleaseRegistry):
    """ReleaseRegistry serving versions from a dict keyed by repo."""

    def __init__(self, releases: dict[str, list[str]] | None = None):
        self._releases = dict(releases or {})
        self._failure: OpUbiError | None = None
        self._call_log: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "mock-registry"

    @property
    def call_log(self) -> list[dict[str, Any]]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return True

    def set_releases(self, repo: str, versions: list[str]) -> None:
        self._releases[repo] = list(versions)

    def set_failure(self, error: OpUbiError) -> None:
        self._failure = error

    def fetch_versions(self, repo: str, token: Token) -> list[str]:
        self._call_log.append({"repo": repo, "token": token})
        if self._failure is not None:
            raise self._failure
        if repo not in self._releases:
            raise RemoteNotFound(f"Repository not found: {repo}", context={"repo": repo})
        versions = [normalize(v) for v in self._releases[repo]]
        if not versions:
            raise NoVersionsFound("No versions found", context={"repo": repo})
        return versions

    def reset(self) -> None:
        self._call_log.clear()
        self._failure = None


class MockInstaller(Installer):
    """Installer that fakes ``ubi`` runs.

    ``succeed_tags`` lists the tags that install successfully; each
    success writes ``binaries`` into bin_path unless ``produce`` is False.
    ``on_install`` can override the behavior entirely.
    """

    def __init__(
        self,
        succeed_tags: set[str] | None = None,
        binaries: tuple[str, ...] = ("tool",),
        produce: bool = True,
        available: bool = True,
        on_install: Callable[[str, str, Path], CommandResult] | None = None,
    ):
        self._succeed_tags = succeed_tags
        self._binaries = binaries
        self._produce = produce
        self._available = available
        self._on_install = on_install
        self._call_log: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "mock-installer"

    @property
    def call_log(self) -> list[dict[str, Any]]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def tags_tried(self) -> list[str]:
        return [c["tag"] for c in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def install(self, repo: str, tag: str, bin_path: Path, token: Token) -> CommandResult:
        self._call_log.append({"repo": repo, "tag": tag, "bin_path": bin_path, "token": token})
        argv = ["ubi", "--project", repo, "--tag", tag, "--in", str(bin_path)]

        if self._on_install is not None:
            return self._on_install(repo, tag, bin_path)

        if self._succeed_tags is not None and tag not in self._succeed_tags:
            return CommandResult.failure(argv, stderr=f"[mock] no release tagged {tag}")

        if self._produce:
            bin_path.mkdir(parents=True, exist_ok=True)
            for binary in self._binaries:
                (bin_path / binary).write_text("#!/bin/sh\n")
        return CommandResult.success(argv, stdout=f"[mock] installed {repo}@{tag}")

    def reset(self) -> None:
        self._call_log.clear()
