"""
Install orchestrator — token, tag fallback, verification.

Each install re-reads the token: the list-versions hook that ran
before it was a separate process, and tokens are never cached.

GoReleaser and most GitHub projects tag ``v1.2.3``; some tag plain
``1.2.3``.  The orchestrator tries the ``v`` form first and the bare
form second.  That is the only retry anywhere in the plugin.
"""

from __future__ import annotations

import logging
from pathlib import Path

from op_ubi.adapters.base import CredentialProvider, Installer
from op_ubi.core.config.loader import PluginConfig
from op_ubi.core.errors import InstallerFailed, InstallerMissing, NoBinariesProduced
from op_ubi.core.models.install import (
    InstallationRequest,
    InstallationResult,
    InstallAttempt,
)
from op_ubi.core.models.version import normalize

logger = logging.getLogger(__name__)

UBI_INSTALL_HINT = (
    "ubi (Universal Binary Installer) is required for installation.\n"
    "\n"
    "To install ubi:\n"
    "  mise use ubi:houseabsolute/ubi\n"
    "\n"
    "Then try your command again."
)

INSTALL_FAILED_HINT = (
    "This could mean:\n"
    "  - The version doesn't exist in the repository\n"
    "  - The release doesn't have compatible binaries for your platform\n"
    "  - Your GitHub token doesn't have access to this repository"
)


def candidate_tags(version: str) -> list[str]:
    """Tags to try, in order: ``v<version>`` then ``<version>``."""
    bare = normalize(version)
    return [f"v{bare}", bare]


def list_binaries(bin_path: Path) -> list[str]:
    """Names of the entries in ``bin_path`` (empty if it does not exist)."""
    if not bin_path.is_dir():
        return []
    return sorted(p.name for p in bin_path.iterdir())


def _verification_hint(repo: str, bin_path: Path, tag: str) -> str:
    return (
        "ubi executed successfully but didn't place any files in:\n"
        f"  {bin_path}\n"
        "\n"
        "This might indicate:\n"
        "  - The release has no binaries for your OS/architecture\n"
        "  - The release assets have an unexpected structure\n"
        "\n"
        "Check the release manually at:\n"
        f"  https://github.com/{repo}/releases/tag/{tag}"
    )


class InstallOrchestrator:
    """Installs one resolved version through the installer capability.

    Args:
        config: Invocation settings (token reference, account).
        credentials: Credential backend.
        installer: Binary installer.
    """

    def __init__(
        self,
        config: PluginConfig,
        credentials: CredentialProvider,
        installer: Installer,
    ):
        self._config = config
        self._credentials = credentials
        self._installer = installer

    def install(self, request: InstallationRequest) -> InstallationResult:
        """Install ``request.version`` of ``request.repo`` into ``install_path/bin``.

        Raises:
            InstallerMissing: The installer executable is not on PATH.
            ConfigurationError / CredentialError: No token could be read.
            InstallerFailed: Both tag conventions failed (both outputs attached).
            NoBinariesProduced: The installer succeeded but bin/ is empty.
        """
        repo = request.repo
        context = {"repo": repo, "version": request.version}

        if not self._installer.is_available():
            raise InstallerMissing("ubi CLI not found in PATH", hint=UBI_INSTALL_HINT, context=context)

        reference = self._config.require_token_reference()
        token = self._credentials.fetch_token(reference, self._config.resolve_account())

        bin_path = request.bin_path
        bin_path.mkdir(parents=True, exist_ok=True)

        attempts: list[InstallAttempt] = []
        for tag in candidate_tags(request.version):
            result = self._installer.install(repo, tag, bin_path, token)
            attempts.append(
                InstallAttempt(
                    tag=tag,
                    ok=result.ok,
                    output=result.output,
                    elapsed_ms=result.elapsed_ms,
                )
            )
            if result.ok:
                break
            logger.info("Install of %s with tag %s failed; %s", repo, tag, result.output or "no output")

        winning = attempts[-1]
        if not winning.ok:
            tried = ", ".join(a.tag for a in attempts)
            details = "\n".join(f"[{a.tag}] {a.output or 'no output'}" for a in attempts)
            raise InstallerFailed(
                "ubi installation failed\n"
                "\n"
                f"Tool: {repo}\n"
                f"Version: {request.version}\n"
                f"Tags tried: {tried}\n"
                f"Error:\n{details}",
                hint=INSTALL_FAILED_HINT,
                context={
                    **context,
                    "attempts": [a.model_dump(mode="json") for a in attempts],
                },
            )

        binaries = list_binaries(bin_path)
        if not binaries:
            raise NoBinariesProduced(
                "Installation completed but no binaries found",
                hint=_verification_hint(repo, bin_path, winning.tag),
                context={**context, "bin_path": str(bin_path), "tag": winning.tag},
            )

        logger.info("Installed %s@%s: %s", repo, winning.tag, ", ".join(binaries))
        return InstallationResult(
            repo=repo,
            version=request.version,
            tag=winning.tag,
            bin_path=str(bin_path),
            binaries=binaries,
            attempts=attempts,
        )
