"""
Configuration management for the MDE operations toolkit.

Provides a layered configuration with the following precedence:
1. CLI arguments (highest priority)
2. Environment variables (also read from a .env file)
3. Global config file (~/.mde-ops/config.yaml)
4. Built-in defaults (lowest priority)
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


logger = logging.getLogger(__name__)


# Load .env file if present
load_dotenv()


if os.name == 'nt':  # Windows
    CONFIG_DIR = Path(os.environ.get('USERPROFILE', '~')) / '.mde-ops'
else:  # Unix/Mac
    CONFIG_DIR = Path(os.environ.get('HOME', '~')) / '.mde-ops'

CONFIG_FILE = CONFIG_DIR / 'config.yaml'

DEFAULT_CLUSTER_NAME = "sfp-gke"
DEFAULT_VERSION = "1.2.0"


@dataclass(frozen=True)
class TargetScope:
    """The deployment a command operates on."""

    project_id: str
    dataset_name: str = ""
    cluster_name: str = DEFAULT_CLUSTER_NAME
    version: str = DEFAULT_VERSION

    def require(self, *fields: str) -> "TargetScope":
        """Raise ConfigError if any of the named fields is empty."""
        labels = {
            "project_id": "Project ID",
            "dataset_name": "Dataset Name",
            "cluster_name": "Cluster Name",
        }
        for name in fields:
            value = getattr(self, name)
            if not value or not str(value).strip():
                raise ConfigError(
                    f"{labels.get(name, name)} can not be empty",
                    details={"field": name},
                )
        return self


@dataclass
class GlobalConfig:
    """Settings shared by every mde-ops command."""

    project_id: Optional[str] = None
    dataset_name: Optional[str] = None
    cluster_name: str = DEFAULT_CLUSTER_NAME
    command_timeout: Optional[float] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "GlobalConfig":
        """Load configuration from file and environment."""
        path = path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
                config = cls._from_dict(data)
                logger.debug(f"Loaded config from {path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file: {e}")

        config._apply_env_overrides()
        return config

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "GlobalConfig":
        defaults = data.get('defaults', {}) or {}
        options = data.get('options', {}) or {}

        return cls(
            project_id=defaults.get('project_id'),
            dataset_name=defaults.get('dataset_name'),
            cluster_name=defaults.get('cluster_name') or DEFAULT_CLUSTER_NAME,
            command_timeout=options.get('command_timeout'),
        )

    def _apply_env_overrides(self) -> None:
        if os.environ.get('MDE_PROJECT_ID'):
            self.project_id = os.environ['MDE_PROJECT_ID']
        if os.environ.get('MDE_DATASET_NAME'):
            self.dataset_name = os.environ['MDE_DATASET_NAME']
        if os.environ.get('MDE_CLUSTER_NAME'):
            self.cluster_name = os.environ['MDE_CLUSTER_NAME']

    def resolve_scope(
        self,
        project_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
    ) -> TargetScope:
        """
        Build a TargetScope from CLI values and configured defaults.

        A CLI value of None falls back to the configured one; an explicit
        empty string is kept so that validation rejects it.
        """
        return TargetScope(
            project_id=(self.project_id or "") if project_id is None else project_id,
            dataset_name=(self.dataset_name or "") if dataset_name is None else dataset_name,
            cluster_name=self.cluster_name,
        )


def get_config_file_path() -> Path:
    """Get the path to the global config file."""
    return CONFIG_FILE
