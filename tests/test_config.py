"""
Tests for configuration loading — defaults, YAML file, env overrides.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from op_ubi.core.config.loader import PluginConfig, load_config
from op_ubi.core.errors import ConfigurationError


class TestDefaults:
    def test_defaults(self):
        config = load_config(environ={})
        assert config.token_reference is None
        assert config.cache_days == 7
        assert config.force_refresh is False
        assert config.account is None
        assert config.api_url == "https://api.github.com"

    def test_frozen(self):
        config = PluginConfig()
        with pytest.raises(ValidationError):
            config.cache_days = 3

    def test_require_reference(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PluginConfig().require_token_reference()
        assert "MISE_OP_UBI_GITHUB_TOKEN_REFERENCE" in exc_info.value.hint

    def test_negative_cache_days(self):
        with pytest.raises(ConfigurationError):
            load_config(environ={"MISE_OP_UBI_CACHE_DAYS": "-1"})


class TestEnvironment:
    def test_legacy_reference(self):
        config = load_config(environ={"MISE_OP_UBI_GITHUB_TOKEN_REFERENCE": "op://V/I/f"})
        assert config.token_reference == "op://V/I/f"

    def test_field_name_wins_over_legacy(self):
        config = load_config(environ={
            "MISE_OP_UBI_TOKEN_REFERENCE": "op://New/I/f",
            "MISE_OP_UBI_GITHUB_TOKEN_REFERENCE": "op://Old/I/f",
        })
        assert config.token_reference == "op://New/I/f"

    def test_cache_days(self):
        assert load_config(environ={"MISE_OP_UBI_CACHE_DAYS": "1"}).cache_days == 1

    def test_bad_cache_days_falls_back(self):
        assert load_config(environ={"MISE_OP_UBI_CACHE_DAYS": "weekly"}).cache_days == 7

    @pytest.mark.parametrize("value", ["true", "1", "yes", "TRUE", " on "])
    def test_force_refresh_truthy(self, value):
        assert load_config(environ={"MISE_OP_UBI_FORCE_REFRESH": value}).force_refresh is True

    @pytest.mark.parametrize("value", ["false", "0", "", "no"])
    def test_force_refresh_falsy(self, value):
        assert load_config(environ={"MISE_OP_UBI_FORCE_REFRESH": value}).force_refresh is False

    def test_account_setting(self):
        config = load_config(environ={"MISE_OP_UBI_ACCOUNT": "acme"})
        assert config.resolve_account({"OP_ACCOUNT": "other"}) == "acme"

    def test_op_account_fallback(self):
        assert PluginConfig().resolve_account({"OP_ACCOUNT": "other"}) == "other"
        assert PluginConfig().resolve_account({}) is None


class TestSettingsFile:
    def test_flat_file(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("token_reference: op://File/I/f\ncache_days: 3\n")
        config = load_config(path, environ={})
        assert config.token_reference == "op://File/I/f"
        assert config.cache_days == 3

    def test_wrapped_file(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("op_ubi:\n  account: acme\n")
        assert load_config(path, environ={}).account == "acme"

    def test_env_overrides_file(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("cache_days: 3\n")
        config = load_config(path, environ={"MISE_OP_UBI_CACHE_DAYS": "10"})
        assert config.cache_days == 10

    def test_path_from_env(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("api_url: https://ghe.example.com/api/v3\n")
        config = load_config(environ={"MISE_OP_UBI_CONFIG": str(path)})
        assert config.api_url == "https://ghe.example.com/api/v3"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("")
        assert load_config(path, environ={}).cache_days == 7

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yml", environ={})

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("cache_days: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path, environ={})

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path, environ={})

    def test_unknown_key(self, tmp_path: Path):
        path = tmp_path / "op-ubi.yml"
        path.write_text("cache_dayz: 3\n")
        with pytest.raises(ConfigurationError, match="Invalid op-ubi configuration"):
            load_config(path, environ={})
