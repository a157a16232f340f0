"""Tests for gworkspace/config_models.py"""

import pytest
import yaml

from gworkspace import CONFIG_PATH
from gworkspace.config_models import CacheConfig, WorkspaceConfig, load_and_validate


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("GWORKSPACE_CONFIG", raising=False)
    monkeypatch.delenv("GWORKSPACE_USER_EMAIL", raising=False)


class TestWorkspaceConfig:
    def test_defaults(self):
        config = WorkspaceConfig()
        assert config.mcp_server.command == "uvx"
        assert config.mcp_server.args == ["workspace-mcp"]
        assert config.mcp_server.timeout_seconds == 120.0
        assert config.user_email is None
        assert config.cache.namespace == "google-workspace-manager"
        assert config.cache.enabled is True
        assert config.cache.default_ttl == 300

    def test_valid_overrides(self):
        config = WorkspaceConfig(
            mcp_server={"command": "workspace-mcp", "args": [], "env": {"A": "1"}},
            cache={"namespace": "team", "default_ttl": 60},
        )
        assert config.mcp_server.command == "workspace-mcp"
        assert config.mcp_server.env == {"A": "1"}
        assert config.cache.default_ttl == 60

    def test_extra_keys_allowed(self):
        config = WorkspaceConfig(cache={"namespace": "x", "unknown_field": "value"})
        assert config.cache.namespace == "x"

    def test_namespace_with_separator_rejected(self):
        with pytest.raises(ValueError):
            CacheConfig(namespace="a:b")

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            CacheConfig(default_ttl=0)


class TestLoadAndValidate:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_and_validate(tmp_path / "missing.yaml")
        assert config == WorkspaceConfig()

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "workspace.yaml"
        path.write_text("user_email: me@example.com\ncache:\n  enabled: false\n")

        config = load_and_validate(path)
        assert config.user_email == "me@example.com"
        assert config.cache.enabled is False

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "workspace.yaml"
        path.write_text("cache:\n  default_ttl: -5\n")

        assert load_and_validate(path).cache.default_ttl == 300

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("user_email: env@example.com\n")
        monkeypatch.setenv("GWORKSPACE_CONFIG", str(path))

        assert load_and_validate().user_email == "env@example.com"

    def test_user_email_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "workspace.yaml"
        path.write_text("user_email: file@example.com\n")
        monkeypatch.setenv("GWORKSPACE_USER_EMAIL", "override@example.com")

        assert load_and_validate(path).user_email == "override@example.com"

    def test_bundled_config_matches_model_defaults(self):
        raw = yaml.safe_load(CONFIG_PATH.read_text()) or {}
        assert WorkspaceConfig.model_validate(raw) == WorkspaceConfig()

    def test_installed_copy_without_args_dir_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr("gworkspace.config_models.CONFIG_PATH", tmp_path / "args" / "workspace.yaml")
        assert load_and_validate() == WorkspaceConfig()
