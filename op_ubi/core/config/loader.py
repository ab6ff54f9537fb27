"""
Configuration loader — builds the per-invocation PluginConfig.

Sources, lowest to highest precedence:

    1. Field defaults
    2. Optional YAML settings file (``--config`` or MISE_OP_UBI_CONFIG)
    3. MISE_OP_UBI_<FIELD> environment variables

The result is an immutable value passed into every component's
constructor.  Nothing here reads configuration lazily from globals.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from op_ubi.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MISE_OP_UBI_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"

# Name used by earlier releases for the token reference
LEGACY_TOKEN_ENV_VAR = f"{ENV_PREFIX}GITHUB_TOKEN_REFERENCE"

DEFAULT_CACHE_DAYS = 7
DEFAULT_API_URL = "https://api.github.com"

TOKEN_REFERENCE_HINT = (
    "Please set your 1Password reference path:\n"
    "  export MISE_OP_UBI_GITHUB_TOKEN_REFERENCE='op://YourVault/YourItem/field'\n"
    "\n"
    "Example:\n"
    "  export MISE_OP_UBI_GITHUB_TOKEN_REFERENCE='op://Production/GitHub/token'\n"
    "\n"
    "Or in mise.toml:\n"
    "  [env]\n"
    '  MISE_OP_UBI_GITHUB_TOKEN_REFERENCE = "op://Production/GitHub/token"'
)

_TRUE_VALUES = {"true", "1", "yes", "on"}


class PluginConfig(BaseModel):
    """Validated plugin settings for one invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    token_reference: str | None = None
    cache_days: int = Field(default=DEFAULT_CACHE_DAYS, ge=0)
    force_refresh: bool = False
    account: str | None = None
    cache_dir: str | None = None
    api_url: str = DEFAULT_API_URL
    op_timeout: int = Field(default=30, gt=0)
    install_timeout: int = Field(default=300, gt=0)
    http_timeout: int = Field(default=15, gt=0)

    def require_token_reference(self) -> str:
        """Return the token reference, or fail with setup instructions.

        Raises:
            ConfigurationError: If no reference is configured.
        """
        if not self.token_reference:
            raise ConfigurationError(
                "GitHub token reference not configured",
                hint=TOKEN_REFERENCE_HINT,
            )
        return self.token_reference

    def resolve_account(self, environ: Mapping[str, str] | None = None) -> str | None:
        """Plugin account setting first, then the standard OP_ACCOUNT."""
        if self.account:
            return self.account
        env = os.environ if environ is None else environ
        return env.get("OP_ACCOUNT") or None


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> PluginConfig:
    """Load and validate plugin configuration.

    Args:
        path: Explicit YAML settings file.  If None, MISE_OP_UBI_CONFIG
            is consulted; with neither, only env vars and defaults apply.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated PluginConfig.

    Raises:
        ConfigurationError: If the file is unreadable or any value is invalid.
    """
    env = os.environ if environ is None else environ

    if path is None and env.get(CONFIG_ENV_VAR):
        path = Path(env[CONFIG_ENV_VAR])

    data: dict[str, Any] = {}
    if path is not None:
        data.update(_read_settings_file(path))

    data.update(_read_env(env))

    try:
        config = PluginConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid op-ubi configuration: {e}") from e

    logger.debug(
        "Config: cache_days=%d force_refresh=%s account=%s reference_set=%s",
        config.cache_days,
        config.force_refresh,
        config.account or "-",
        bool(config.token_reference),
    )
    return config


def _read_settings_file(path: Path) -> dict[str, Any]:
    """Parse the YAML settings file into a plain mapping."""
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    logger.debug("Loading op-ubi settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may wrap everything under an "op_ubi" key or be flat
    if isinstance(data.get("op_ubi"), dict):
        data = data["op_ubi"]

    return dict(data)


def _read_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect MISE_OP_UBI_* overrides."""
    data: dict[str, Any] = {}

    for name in PluginConfig.model_fields:
        value = env.get(f"{ENV_PREFIX}{name.upper()}")
        if value is None:
            continue
        if name == "force_refresh":
            data[name] = value.strip().lower() in _TRUE_VALUES
        elif name == "cache_days":
            # Unparseable values fall back to the default rather than failing
            try:
                data[name] = int(value)
            except ValueError:
                logger.warning("Ignoring non-integer %sCACHE_DAYS=%r", ENV_PREFIX, value)
        else:
            data[name] = value

    if "token_reference" not in data and env.get(LEGACY_TOKEN_ENV_VAR):
        data["token_reference"] = env[LEGACY_TOKEN_ENV_VAR]

    return data
