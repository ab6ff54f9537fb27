"""
Token — an in-memory secret that refuses to be printed.

A Token lives for one hook invocation.  It has no serializer, its
``repr``/``str`` are redacted, and its value is registered with the
logging redaction filter the moment it is created.
"""

from __future__ import annotations

from op_ubi.core.observability.logging_config import register_secret

_REDACTED = "***"


class Token:
    """Opaque wrapper around a credential string."""

    __slots__ = ("_value",)

    def __init__(self, value: str):
        self._value = value
        register_secret(value)

    def reveal(self) -> str:
        """Return the raw secret.  Only collaborators that transmit it call this."""
        return self._value

    def __len__(self) -> int:
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"Token({_REDACTED})"

    def __str__(self) -> str:
        return _REDACTED

    def __reduce__(self):
        raise TypeError("Token objects cannot be pickled")
