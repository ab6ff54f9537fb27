"""
Domain models — Pydantic types for op-ubi.

All models are re-exported here for convenient access:

    from op_ubi.core.models import CacheEntry, CommandResult, InstallationRequest
"""

from op_ubi.core.models.cache import CacheEntry
from op_ubi.core.models.command import CommandResult
from op_ubi.core.models.install import (
    InstallationRequest,
    InstallationResult,
    InstallAttempt,
)
from op_ubi.core.models.secret import Token
from op_ubi.core.models.version import (
    normalize,
    repo_from_key,
    sanitize_repo,
    validate_repo,
    version_exists,
)

__all__ = [
    # cache.py
    "CacheEntry",
    # command.py
    "CommandResult",
    # install.py
    "InstallAttempt",
    "InstallationRequest",
    "InstallationResult",
    # secret.py
    "Token",
    # version.py
    "normalize",
    "repo_from_key",
    "sanitize_repo",
    "validate_repo",
    "version_exists",
]
