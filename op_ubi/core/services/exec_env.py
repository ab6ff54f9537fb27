"""Execution environment for an installed tool: put its bin/ on PATH."""

from __future__ import annotations

from pathlib import Path

from op_ubi.core.models.install import BIN_DIR


def exec_env(install_path: str | Path) -> dict[str, list[dict[str, str]]]:
    """Env vars mise applies when running the tool."""
    bin_path = Path(install_path) / BIN_DIR
    return {"env_vars": [{"key": "PATH", "value": str(bin_path)}]}
