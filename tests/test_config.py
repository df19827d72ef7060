"""
Tests for configuration module.
"""

import pytest

from mde_ops.core.config import DEFAULT_CLUSTER_NAME, GlobalConfig, TargetScope
from mde_ops.core.errors import ConfigError


class TestTargetScope:
    """Tests for TargetScope."""

    def test_require_passes_with_values(self):
        scope = TargetScope(project_id="p", dataset_name="d")
        assert scope.require("project_id", "dataset_name") is scope

    def test_require_empty_dataset(self):
        """Test that an empty dataset name raises ConfigError."""
        with pytest.raises(ConfigError, match="Dataset Name can not be empty"):
            TargetScope(project_id="p", dataset_name="").require("project_id", "dataset_name")

    def test_require_blank_project(self):
        with pytest.raises(ConfigError, match="Project ID"):
            TargetScope(project_id="   ").require("project_id")

    def test_scope_is_immutable(self):
        scope = TargetScope(project_id="p")
        with pytest.raises(AttributeError):
            scope.project_id = "other"

    def test_defaults(self):
        scope = TargetScope(project_id="p")
        assert scope.cluster_name == DEFAULT_CLUSTER_NAME
        assert scope.version == "1.2.0"


class TestGlobalConfig:
    """Tests for GlobalConfig."""

    def test_load_without_file(self, isolated_config):
        config = GlobalConfig.load()
        assert config.project_id is None
        assert config.cluster_name == DEFAULT_CLUSTER_NAME

    def test_load_from_file(self, isolated_config):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text(
            "defaults:\n"
            "  project_id: file-project\n"
            "  dataset_name: file_dataset\n"
            "  cluster_name: other-gke\n"
            "options:\n"
            "  command_timeout: 30\n"
        )
        config = GlobalConfig.load()
        assert config.project_id == "file-project"
        assert config.dataset_name == "file_dataset"
        assert config.cluster_name == "other-gke"
        assert config.command_timeout == 30

    def test_invalid_file_is_ignored(self, isolated_config):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("defaults: [unclosed\n")
        config = GlobalConfig.load()
        assert config.project_id is None

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("defaults:\n  project_id: file-project\n")
        monkeypatch.setenv("MDE_PROJECT_ID", "env-project")
        monkeypatch.setenv("MDE_CLUSTER_NAME", "env-gke")
        config = GlobalConfig.load()
        assert config.project_id == "env-project"
        assert config.cluster_name == "env-gke"


class TestResolveScope:
    """Tests for CLI / config precedence."""

    def test_cli_values_win(self):
        config = GlobalConfig(project_id="cfg", dataset_name="cfg_ds")
        scope = config.resolve_scope("cli", "cli_ds")
        assert scope.project_id == "cli"
        assert scope.dataset_name == "cli_ds"

    def test_missing_cli_values_fall_back(self):
        config = GlobalConfig(project_id="cfg", dataset_name="cfg_ds", cluster_name="c")
        scope = config.resolve_scope()
        assert scope == TargetScope(project_id="cfg", dataset_name="cfg_ds", cluster_name="c")

    def test_explicit_empty_value_is_kept(self):
        """Test an explicit empty string is not replaced by the configured value."""
        config = GlobalConfig(project_id="cfg", dataset_name="cfg_ds")
        scope = config.resolve_scope("cli", "")
        assert scope.dataset_name == ""
        with pytest.raises(ConfigError):
            scope.require("dataset_name")
