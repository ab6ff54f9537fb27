"""
Installation request/result models.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

BIN_DIR = "bin"


class InstallationRequest(BaseModel):
    """What the host asked us to install, and where."""

    repo: str
    version: str
    install_path: str

    @property
    def bin_path(self) -> Path:
        """Directory the installer drops binaries into."""
        return Path(self.install_path) / BIN_DIR


class InstallAttempt(BaseModel):
    """One installer invocation with one tag convention."""

    tag: str
    ok: bool = False
    output: str = ""
    elapsed_ms: int = 0


class InstallationResult(BaseModel):
    """A successful installation."""

    repo: str
    version: str
    tag: str                                      # the tag that worked
    bin_path: str
    binaries: list[str] = Field(default_factory=list)
    attempts: list[InstallAttempt] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
