"""
1Password CLI credential provider.

Reads secrets with ``op read <op://vault/item/field>``.  This is the
slow call (500ms-2s: biometric unlock, network round-trip) that the
version cache exists to avoid.

``op`` offers no machine-readable error channel, so failures are
detected by exit status and then *classified* by matching stderr
against the phrase table below.  That table is the only place in the
plugin where error text is matched.
"""

from __future__ import annotations

import logging
import shutil

from op_ubi.adapters.base import Availability, CredentialProvider
from op_ubi.adapters.shell.command import Runner, run_command
from op_ubi.core.errors import (
    CredentialError,
    CredentialInvalid,
    CredentialNotFound,
    CredentialUnauthenticated,
    CredentialUnavailable,
)
from op_ubi.core.models.command import CommandResult
from op_ubi.core.models.secret import Token

logger = logging.getLogger(__name__)

OP_BINARY = "op"

# GitHub tokens are 40+ chars; anything this short is an error message or empty
MIN_TOKEN_LENGTH = 10

# ── Failure phrase table ────────────────────────────────────────
# Checked in order; first match wins.  Lowercase.

_PHRASES: tuple[tuple[type[CredentialError], tuple[str, ...]], ...] = (
    (
        CredentialUnauthenticated,
        (
            "not signed in",
            "not currently signed in",
            "signin",
            "sign in",
            "session expired",
            "authenticate",
            "authorization prompt dismissed",
        ),
    ),
    (
        CredentialNotFound,
        (
            "isn't an item",
            "isn't a vault",
            "isn't a field",
            "could not find",
            "no item",
            "not found",
            "invalid secret reference",
        ),
    ),
    (
        CredentialUnavailable,
        (
            "rate limit",
            "too many requests",
            "service unavailable",
            "timed out",
            "timeout",
            "connection",
            "could not connect",
        ),
    ),
)

# ── Remediation hints ───────────────────────────────────────────

HINT_MISSING = (
    "To fix this:\n"
    "  1. Install 1Password CLI: mise install ubi:1Password/op\n"
    "  2. Reload your shell or run: mise reshim\n"
    "  3. Try your command again"
)

HINT_UNAUTHENTICATED = (
    "To fix this:\n"
    "  Option A (Desktop app integration - recommended):\n"
    "    1. Install 1Password desktop app\n"
    "    2. Enable CLI integration in app settings\n"
    "    3. Run: op signin\n"
    "\n"
    "  Option B (Service account for automation):\n"
    "    1. Create service account in 1Password\n"
    "    2. Export token: export OP_SERVICE_ACCOUNT_TOKEN='your-token'\n"
    "    3. Try your command again"
)


def _hint_not_found(reference: str) -> str:
    return (
        f"Current path: {reference}\n"
        "\n"
        "To fix this:\n"
        f"  1. Verify the token exists: op read '{reference}'\n"
        "  2. If path is wrong, set: export MISE_OP_UBI_GITHUB_TOKEN_REFERENCE='op://Vault/Item/field'\n"
        "  3. If you have multiple accounts, set: export OP_ACCOUNT='your-account-name'\n"
        "  4. Create the token in 1Password if it doesn't exist"
    )


def classify_op_failure(text: str) -> type[CredentialError]:
    """Map ``op`` error output to a credential error class."""
    lowered = text.lower()
    for error_cls, phrases in _PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return error_cls
    return CredentialUnavailable


def _account_args(account: str | None) -> list[str]:
    return ["--account", account] if account else []


class OnePasswordProvider(CredentialProvider):
    """CredentialProvider backed by the ``op`` CLI.

    Args:
        timeout: Seconds allowed for each ``op`` call.
        runner: Command runner (injectable for tests).
        default_account: Account used when ``fetch_token`` gets none.
    """

    def __init__(
        self,
        timeout: int = 30,
        runner: Runner = run_command,
        default_account: str | None = None,
    ):
        self._timeout = timeout
        self._run = runner
        self._default_account = default_account

    @property
    def name(self) -> str:
        return OP_BINARY

    def availability(self, account: str | None = None) -> Availability:
        account = account or self._default_account

        if shutil.which(OP_BINARY) is None:
            return Availability.missing(
                "1Password CLI (op) not found in PATH. "
                "Install it with: mise install ubi:1Password/op"
            )

        result = self._run(
            [OP_BINARY, "account", "list", *_account_args(account)],
            timeout=self._timeout,
        )
        if not result.ok:
            reason = "1Password CLI not authenticated. Run 'op signin'"
            if account:
                reason += f" --account '{account}'"
            reason += " or set OP_SERVICE_ACCOUNT_TOKEN"
            logger.debug("op account list failed: %s", result.stderr.strip())
            return Availability.unauthenticated(reason)

        return Availability.available()

    def fetch_token(self, reference: str, account: str | None = None) -> Token:
        account = account or self._default_account
        context = {"reference": reference}
        if account:
            context["account"] = account

        available = self.availability(account)
        if not available:
            if available.kind == "missing":
                raise CredentialUnavailable(
                    "1Password CLI Error: op command not found",
                    hint=HINT_MISSING,
                    context=context,
                )
            raise CredentialUnauthenticated(
                f"1Password CLI Error: Not signed in ({available.reason})",
                hint=HINT_UNAUTHENTICATED,
                context=context,
            )

        logger.info("Reading GitHub token from 1Password (%s)", reference)
        result = self._run(
            [OP_BINARY, "read", *_account_args(account), reference],
            timeout=self._timeout,
        )

        if not result.ok:
            raise self._classify(result, reference, context)

        value = result.stdout.strip()
        if len(value) < MIN_TOKEN_LENGTH:
            raise CredentialInvalid(
                f"Retrieved token from 1Password is invalid or empty. Path: {reference}",
                context=context,
            )

        return Token(value)

    def _classify(
        self,
        result: CommandResult,
        reference: str,
        context: dict[str, str],
    ) -> CredentialError:
        """Turn a failed ``op read`` into a classified error."""
        # stdout never enters the error: on a partial success it can hold the secret
        detail = result.launch_error or result.stderr.strip() or f"exit code {result.returncode}"
        if result.timed_out:
            error_cls: type[CredentialError] = CredentialUnavailable
        else:
            error_cls = classify_op_failure(detail)

        context = {**context, "op_error": detail}

        if error_cls is CredentialUnauthenticated:
            return CredentialUnauthenticated(
                "1Password CLI Error: Not signed in",
                hint=HINT_UNAUTHENTICATED,
                context=context,
            )
        if error_cls is CredentialNotFound:
            return CredentialNotFound(
                "1Password CLI Error: Token not found at configured path",
                hint=_hint_not_found(reference),
                context=context,
            )

        account = context.get("account")
        account_info = f"\nAccount: {account}" if account else ""
        return CredentialUnavailable(
            "Failed to retrieve GitHub token from 1Password. "
            f"Check that '{reference}' exists and is accessible.{account_info}"
            f"\n\nError from 1Password CLI:\n{detail}",
            context=context,
        )
