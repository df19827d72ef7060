"""
Core module for the MDE operations toolkit.

Contains configuration and errors.
"""

from .config import GlobalConfig, TargetScope, get_config_file_path
from .errors import (
    MdeOpsError,
    ConfigError,
    DependencyMissingError,
    CloudCommandError,
    ProbeError,
    OperationAbortedError,
)

__all__ = [
    "GlobalConfig",
    "TargetScope",
    "get_config_file_path",
    "MdeOpsError",
    "ConfigError",
    "DependencyMissingError",
    "CloudCommandError",
    "ProbeError",
    "OperationAbortedError",
]
