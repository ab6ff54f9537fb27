"""
Tests for the hook use cases — list_versions, install, exec_env, doctor.

All use mock collaborators; classified errors are captured on the
result, not raised.
"""

from pathlib import Path

import pytest

from op_ubi.adapters.base import Availability
from op_ubi.adapters.mock import MockCredentialProvider, MockInstaller
from op_ubi.core.config.loader import PluginConfig
from op_ubi.core.errors import (
    ConfigurationError,
    CredentialUnauthenticated,
    InstallerFailed,
    RemoteNotFound,
)
from op_ubi.core.use_cases.hooks import (
    Collaborators,
    doctor,
    exec_env,
    install,
    list_versions,
    requested_version_from,
)

REPO = "acme/widget"


# ── list_versions ───────────────────────────────────────────────────


class TestListVersions:
    def test_versions(self, config, collaborators):
        result = list_versions(REPO, config=config, collaborators=collaborators, environ={})
        assert result.error is None
        assert result.versions == ["1.0.0", "1.1.0", "1.2.0"]

    def test_invalid_repo(self, config, collaborators, credentials):
        result = list_versions("widget", config=config, collaborators=collaborators, environ={})
        assert isinstance(result.error, ConfigurationError)
        assert "Invalid tool format" in result.error.message
        assert credentials.call_count == 0

    def test_error_captured(self, config, collaborators):
        result = list_versions("acme/missing", config=config, collaborators=collaborators, environ={})
        assert isinstance(result.error, RemoteNotFound)
        assert result.versions == []
        assert result.to_dict()["error"] == "remote_not_found"

    def test_unknown_version_reported(self, config, collaborators):
        result = list_versions(REPO, "9.9.9", config=config, collaborators=collaborators, environ={})
        assert isinstance(result.error, RemoteNotFound)
        assert result.to_dict()["error"] == "version_not_found"

    def test_raise_for_error(self, config, collaborators, credentials):
        credentials.set_failure(CredentialUnauthenticated("1Password CLI Error: Not signed in"))
        result = list_versions(REPO, config=config, collaborators=collaborators, environ={})
        with pytest.raises(CredentialUnauthenticated):
            result.raise_for_error()

    def test_tool_version_env_triggers_smart_invalidation(self, config, collaborators, cache, registry):
        cache.put(REPO, ["1.0.0"])
        result = list_versions(
            REPO,
            config=config,
            collaborators=collaborators,
            environ={"MISE_TOOL_VERSION": "1.2.0"},
        )
        assert result.resolution.smart_invalidated
        assert registry.call_count == 1

    def test_explicit_version_wins_over_env(self, config, collaborators, cache, registry):
        cache.put(REPO, ["1.0.0"])
        result = list_versions(
            REPO,
            "1.0.0",
            config=config,
            collaborators=collaborators,
            environ={"MISE_TOOL_VERSION": "1.2.0"},
        )
        assert result.resolution.source == "cache"
        assert registry.call_count == 0

    def test_to_dict(self, config, collaborators):
        data = list_versions(REPO, config=config, collaborators=collaborators, environ={}).to_dict()
        assert data["versions"] == ["1.0.0", "1.1.0", "1.2.0"]
        assert data["source"] == "remote"


class TestRequestedVersionFrom:
    def test_explicit(self):
        assert requested_version_from("1.0.0", {"MISE_TOOL_VERSION": "2.0.0"}) == "1.0.0"

    def test_env(self):
        assert requested_version_from(None, {"MISE_TOOL_VERSION": "2.0.0"}) == "2.0.0"

    def test_neither(self):
        assert requested_version_from(None, {}) is None
        assert requested_version_from("", {"MISE_TOOL_VERSION": ""}) is None


# ── install ─────────────────────────────────────────────────────────


class TestInstall:
    def test_success(self, config, collaborators, tmp_path: Path):
        result = install(REPO, "1.2.0", tmp_path, config=config, collaborators=collaborators)
        assert result.error is None
        assert result.result.binaries == ["tool"]
        assert result.to_dict() == {}
        assert (tmp_path / "bin" / "tool").is_file()

    def test_missing_version(self, config, collaborators, tmp_path: Path):
        result = install(REPO, "", tmp_path, config=config, collaborators=collaborators)
        assert isinstance(result.error, ConfigurationError)

    def test_invalid_repo(self, config, collaborators, tmp_path: Path):
        result = install("not-a-repo", "1.0.0", tmp_path, config=config, collaborators=collaborators)
        assert isinstance(result.error, ConfigurationError)

    def test_failure_captured(self, config, cache, credentials, registry, tmp_path: Path):
        collab = Collaborators(
            cache=cache,
            credentials=credentials,
            registry=registry,
            installer=MockInstaller(succeed_tags=set()),
        )
        result = install(REPO, "1.2.0", tmp_path, config=config, collaborators=collab)
        assert isinstance(result.error, InstallerFailed)
        assert result.to_dict()["error"] == "installer_failed"


class TestExecEnv:
    def test_path(self, tmp_path: Path):
        assert exec_env(tmp_path) == {
            "env_vars": [{"key": "PATH", "value": str(tmp_path / "bin")}],
        }

    def test_str_path(self):
        assert exec_env("/opt/tools/widget/1.0.0")["env_vars"][0]["value"] == str(
            Path("/opt/tools/widget/1.0.0/bin")
        )


# ── doctor ──────────────────────────────────────────────────────────


class TestDoctor:
    def test_all_ok(self, config, collaborators):
        result = doctor(config, collaborators)
        assert result.ok
        names = [c["name"] for c in result.checks]
        assert names == ["mock-credentials", "mock-installer", "token_reference", "cache"]

    def test_not_signed_in(self, config, cache, registry, installer):
        collab = Collaborators(
            cache=cache,
            credentials=MockCredentialProvider(
                availability_result=Availability.unauthenticated("run op signin"),
            ),
            registry=registry,
            installer=installer,
        )
        result = doctor(config, collab)
        assert not result.ok
        assert result.checks[0]["kind"] == "unauthenticated"

    def test_missing_reference(self, collaborators, cache_dir):
        result = doctor(PluginConfig(cache_dir=str(cache_dir)), collaborators)
        check = next(c for c in result.checks if c["name"] == "token_reference")
        assert not check["ok"]
        assert not result.to_dict()["ok"]

    def test_installer_missing(self, config, cache, credentials, registry):
        collab = Collaborators(
            cache=cache,
            credentials=credentials,
            registry=registry,
            installer=MockInstaller(available=False),
        )
        result = doctor(config, collab)
        check = next(c for c in result.checks if c["name"] == "mock-installer")
        assert check["kind"] == "missing"
