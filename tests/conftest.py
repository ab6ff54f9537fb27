"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from op_ubi.adapters.mock import MockCredentialProvider, MockInstaller, MockReleaseRegistry
from op_ubi.core.config.loader import PluginConfig
from op_ubi.core.observability.logging_config import clear_secrets
from op_ubi.core.persistence.version_cache import VersionCache
from op_ubi.core.use_cases.hooks import Collaborators

REPO = "acme/widget"
REFERENCE = "op://Engineering/GitHub/token"

# 2026-01-01T00:00:00Z
EPOCH = 1767225600


class FakeClock:
    """Settable clock for cache freshness tests."""

    def __init__(self, now: float = EPOCH):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _forget_secrets():
    """Registered secrets must not leak between tests."""
    yield
    clear_secrets()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for cache files."""
    path = tmp_path / "cache" / "op-ubi"
    return path


@pytest.fixture
def cache(cache_dir: Path, clock: FakeClock) -> VersionCache:
    return VersionCache(cache_dir, clock=clock)


@pytest.fixture
def config(cache_dir: Path) -> PluginConfig:
    return PluginConfig(token_reference=REFERENCE, cache_dir=str(cache_dir))


@pytest.fixture
def credentials() -> MockCredentialProvider:
    return MockCredentialProvider()


@pytest.fixture
def registry() -> MockReleaseRegistry:
    return MockReleaseRegistry({REPO: ["v1.0.0", "v1.1.0", "v1.2.0"]})


@pytest.fixture
def installer() -> MockInstaller:
    return MockInstaller()


@pytest.fixture
def collaborators(cache, credentials, registry, installer) -> Collaborators:
    return Collaborators(
        cache=cache,
        credentials=credentials,
        registry=registry,
        installer=installer,
    )
