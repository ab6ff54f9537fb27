"""Adapters — bindings for the credential backend, release registry and installer.

Public re-exports for convenient access.
"""

from op_ubi.adapters.base import (
    Adapter,
    Availability,
    CredentialProvider,
    Installer,
    ReleaseRegistry,
)
from op_ubi.adapters.mock import MockCredentialProvider, MockInstaller, MockReleaseRegistry

__all__ = [
    "Adapter",
    "Availability",
    "CredentialProvider",
    "Installer",
    "MockCredentialProvider",
    "MockInstaller",
    "MockReleaseRegistry",
    "ReleaseRegistry",
]
