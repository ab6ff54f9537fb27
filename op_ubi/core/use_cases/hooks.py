"""
Hook use cases — the three entry points mise calls.

    list_versions(repo, requested_version?)  → {"versions": [...]}
    install(repo, version, install_path)     → {}
    exec_env(install_path)                   → {"env_vars": [...]}

Each call is an independent invocation: it builds its collaborators
from the PluginConfig it is given and shares nothing in memory with
any other call.  Classified errors are captured, unmodified, on the
result object; ``raise_for_error()`` re-raises them.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from op_ubi.adapters.base import CredentialProvider, Installer, ReleaseRegistry
from op_ubi.adapters.credentials.onepassword import OnePasswordProvider
from op_ubi.adapters.installers.ubi import UbiInstaller
from op_ubi.adapters.releases.github import GitHubReleaseRegistry
from op_ubi.core.config.loader import PluginConfig
from op_ubi.core.errors import ConfigurationError, OpUbiError
from op_ubi.core.models.install import InstallationRequest, InstallationResult
from op_ubi.core.models.version import validate_repo
from op_ubi.core.persistence.version_cache import VersionCache
from op_ubi.core.services.exec_env import exec_env as _exec_env
from op_ubi.core.services.installer import InstallOrchestrator
from op_ubi.core.services.resolver import Resolution, Resolver

logger = logging.getLogger(__name__)

# mise exports the requested version here in some invocations
TOOL_VERSION_ENV_VAR = "MISE_TOOL_VERSION"


@dataclass
class Collaborators:
    """The external capabilities one invocation works with."""

    cache: VersionCache
    credentials: CredentialProvider
    registry: ReleaseRegistry
    installer: Installer

    @classmethod
    def from_config(cls, config: PluginConfig) -> Collaborators:
        """Production collaborators: file cache, ``op``, GitHub, ``ubi``."""
        return cls(
            cache=VersionCache(config.cache_dir),
            credentials=OnePasswordProvider(
                timeout=config.op_timeout,
                default_account=config.resolve_account(),
            ),
            registry=GitHubReleaseRegistry(api_url=config.api_url, timeout=config.http_timeout),
            installer=UbiInstaller(timeout=config.install_timeout),
        )


@dataclass
class ListVersionsResult:
    """Outcome of the list-versions hook."""

    repo: str = ""
    resolution: Resolution | None = None
    error: OpUbiError | None = None

    @property
    def versions(self) -> list[str]:
        return self.resolution.versions if self.resolution else []

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        if self.error is not None:
            return self.error.to_dict()
        assert self.resolution is not None
        return self.resolution.to_dict()


@dataclass
class InstallResult:
    """Outcome of the install hook."""

    repo: str = ""
    result: InstallationResult | None = None
    error: OpUbiError | None = None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        # mise only needs an empty table on success
        return {}


@dataclass
class DoctorResult:
    """Availability of every external tool."""

    checks: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(c["ok"] for c in self.checks)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "checks": self.checks}


def requested_version_from(
    requested_version: str | None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Explicit argument first, then MISE_TOOL_VERSION."""
    if requested_version:
        return requested_version
    env = os.environ if environ is None else environ
    return env.get(TOOL_VERSION_ENV_VAR) or None


def list_versions(
    repo: str,
    requested_version: str | None = None,
    *,
    config: PluginConfig,
    collaborators: Collaborators | None = None,
    environ: Mapping[str, str] | None = None,
) -> ListVersionsResult:
    """Resolve the installable versions of ``repo``.

    Args:
        repo: ``owner/name``.
        requested_version: Exact version the user pinned, if any.
        config: Invocation settings.
        collaborators: Override the production collaborators (tests).
        environ: Environment for the MISE_TOOL_VERSION fallback.

    Returns:
        ListVersionsResult with either a resolution or a classified error.
    """
    result = ListVersionsResult(repo=repo)
    try:
        repo = validate_repo(repo)
        collab = collaborators or Collaborators.from_config(config)
        resolver = Resolver(config, collab.cache, collab.credentials, collab.registry)
        result.resolution = resolver.resolve(
            repo,
            requested_version_from(requested_version, environ),
        )
    except OpUbiError as e:
        logger.debug("list-versions failed for %s: %s", repo, e.code)
        result.error = e
    return result


def install(
    repo: str,
    version: str,
    install_path: str | Path,
    *,
    config: PluginConfig,
    collaborators: Collaborators | None = None,
) -> InstallResult:
    """Install ``version`` of ``repo`` under ``install_path``."""
    result = InstallResult(repo=repo)
    try:
        repo = validate_repo(repo)
        if not version:
            raise ConfigurationError("No version specified for installation", context={"repo": repo})
        collab = collaborators or Collaborators.from_config(config)
        orchestrator = InstallOrchestrator(config, collab.credentials, collab.installer)
        result.result = orchestrator.install(
            InstallationRequest(repo=repo, version=version, install_path=str(install_path))
        )
    except OpUbiError as e:
        logger.debug("install failed for %s@%s: %s", repo, version, e.code)
        result.error = e
    return result


def exec_env(install_path: str | Path) -> dict[str, Any]:
    """Env vars for running an installed tool."""
    return _exec_env(install_path)


def doctor(
    config: PluginConfig,
    collaborators: Collaborators | None = None,
) -> DoctorResult:
    """Check the credential backend, installer and configuration."""
    collab = collaborators or Collaborators.from_config(config)
    result = DoctorResult()

    availability = collab.credentials.availability(config.resolve_account())
    result.checks.append({
        "name": collab.credentials.name,
        "ok": availability.ok,
        "kind": availability.kind,
        "detail": availability.reason or "available and signed in",
    })

    installer_ok = collab.installer.is_available()
    result.checks.append({
        "name": collab.installer.name,
        "ok": installer_ok,
        "kind": "ok" if installer_ok else "missing",
        "detail": shutil.which(collab.installer.name) or (
            "found" if installer_ok else "not found in PATH (mise use ubi:houseabsolute/ubi)"
        ),
    })

    result.checks.append({
        "name": "token_reference",
        "ok": bool(config.token_reference),
        "kind": "ok" if config.token_reference else "missing",
        "detail": config.token_reference or "MISE_OP_UBI_GITHUB_TOKEN_REFERENCE is not set",
    })

    entries = collab.cache.entries()
    result.checks.append({
        "name": "cache",
        "ok": True,
        "kind": "ok",
        "detail": f"{collab.cache.cache_dir} ({len(entries)} entries)",
    })
    return result
