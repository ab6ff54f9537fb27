"""
ubi (Universal Binary Installer) adapter.

    ubi --project <owner/name> --tag <tag> --in <bin_path>

The child gets an explicit environment: the GitHub token plus the
invoking user's HOME, PATH and USER.  Nothing else leaks in.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path

from op_ubi.adapters.base import Installer
from op_ubi.adapters.shell.command import Runner, run_command
from op_ubi.core.models.command import CommandResult
from op_ubi.core.models.secret import Token

logger = logging.getLogger(__name__)

UBI_BINARY = "ubi"

PASSTHROUGH_ENV = ("HOME", "PATH", "USER")


def installer_env(token: Token, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build the child environment for an installer run."""
    env = os.environ if environ is None else environ
    child = {"GITHUB_TOKEN": token.reveal()}
    for key in PASSTHROUGH_ENV:
        value = env.get(key)
        if value is not None:
            child[key] = value
    return child


class UbiInstaller(Installer):
    """Installer backed by the ``ubi`` CLI.

    Args:
        timeout: Seconds allowed per installation attempt.
        runner: Command runner (injectable for tests).
    """

    def __init__(self, timeout: int = 300, runner: Runner = run_command):
        self._timeout = timeout
        self._run = runner

    @property
    def name(self) -> str:
        return UBI_BINARY

    def is_available(self) -> bool:
        return shutil.which(UBI_BINARY) is not None

    def install(self, repo: str, tag: str, bin_path: Path, token: Token) -> CommandResult:
        argv = [UBI_BINARY, "--project", repo, "--tag", tag, "--in", str(bin_path)]
        logger.info("Installing %s@%s into %s", repo, tag, bin_path)
        return self._run(argv, env=installer_env(token), timeout=self._timeout)
