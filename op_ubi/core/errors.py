"""
Error taxonomy — every classified failure the plugin can surface.

Services raise these; the CLI is the only layer that turns them into
exit codes.  Each error carries a stable ``code``, a ``context`` dict
(repository, reference path, attempted tags) and a remediation ``hint``.

Secret values never enter an error: callers pass references and tags,
not tokens.
"""

from __future__ import annotations

from typing import Any


class OpUbiError(Exception):
    """Base class for all classified op-ubi failures."""

    code = "op_ubi_error"

    def __init__(
        self,
        message: str,
        *,
        hint: str = "",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\n{self.hint}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        return {
            "error": self.code,
            "message": self.message,
            "hint": self.hint,
            "context": self.context,
        }


# ── Configuration ───────────────────────────────────────────────


class ConfigurationError(OpUbiError):
    """Required configuration is missing or invalid."""

    code = "configuration_error"


# ── Credential backend ──────────────────────────────────────────


class CredentialError(OpUbiError):
    code = "credential_error"


class CredentialUnavailable(CredentialError):
    """Backend executable missing, unreachable, or rate limited."""

    code = "credential_unavailable"


class CredentialUnauthenticated(CredentialError):
    """Backend present but no signed-in session."""

    code = "credential_unauthenticated"


class CredentialNotFound(CredentialError):
    """The reference does not resolve to an item/field."""

    code = "credential_not_found"


class CredentialInvalid(CredentialError):
    """The backend returned something that cannot be a token."""

    code = "credential_invalid"


# ── Release registry ────────────────────────────────────────────


class RemoteError(OpUbiError):
    code = "remote_error"


class RemoteRateLimited(RemoteError):
    code = "remote_rate_limited"


class RemoteAuthFailed(RemoteError):
    code = "remote_auth_failed"


class RemoteNotFound(RemoteError):
    code = "remote_not_found"


class VersionNotFound(RemoteNotFound):
    """The repository exists but has no release for the requested version."""

    code = "version_not_found"


class RemoteMalformed(RemoteError):
    """The registry answered with something we cannot parse."""

    code = "remote_malformed"


class RemoteUnavailable(RemoteMalformed):
    """Transport failure: no usable response at all."""

    code = "remote_unavailable"


class NoVersionsFound(RemoteError):
    """The listing parsed fine but held zero releases."""

    code = "no_versions_found"


# ── Cache ───────────────────────────────────────────────────────


class CacheCorrupt(OpUbiError):
    """Cache read/parse anomaly.

    Never raised to callers.  The cache store builds one only to log
    it, then reports a miss.
    """

    code = "cache_corrupt"


# ── Installer ───────────────────────────────────────────────────


class InstallError(OpUbiError):
    code = "install_error"


class InstallerMissing(InstallError):
    code = "installer_missing"


class InstallerFailed(InstallError):
    """Every tag-convention attempt failed."""

    code = "installer_failed"


class NoBinariesProduced(InstallError):
    """The installer reported success but bin/ is empty."""

    code = "no_binaries_produced"
