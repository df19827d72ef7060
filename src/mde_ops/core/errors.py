"""
Custom exception classes for the MDE operations toolkit.

Exception Hierarchy:
    MdeOpsError (base)
    ├── ConfigError
    ├── DependencyMissingError
    ├── CloudCommandError
    ├── ProbeError
    └── OperationAbortedError

CLI Outcome Mapping (validate, drain-jobs, migrate-gcs, capture-logs):
    ConfigError            → "Configuration error", exit 1, nothing queried
    DependencyMissingError → "<tool> is required", exit 1, nothing queried
    CloudCommandError      → "Execution failed! ... -> Stopping.", exit 1
    OperationAbortedError  → "Cancelled.", exit 1
    ProbeError             → never reaches the CLI; recorded as an ERROR
                             outcome of its resource and validation goes on

A CloudCommandError covers a non-zero exit, a timeout and output that is not
the JSON list of objects the command documents.
"""

from typing import Optional, Dict, Any, Sequence


class MdeOpsError(Exception):
    """Base exception for MDE operations errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(", ".join(f"{key}={value}" for key, value in self.details.items()))
        if self.cause:
            parts.append(f"caused by {type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)


class ConfigError(MdeOpsError):
    """Raised when a required scope value is missing or empty."""

    pass


class DependencyMissingError(MdeOpsError):
    """Raised when a required command-line tool is not installed."""

    def __init__(self, tool: str, **kwargs):
        super().__init__(f"{tool} is required to run this command", **kwargs)
        self.tool = tool


class CloudCommandError(MdeOpsError):
    """Raised when a cloud CLI invocation fails or returns unreadable output."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr or ""

    def __str__(self) -> str:
        msg = self.message
        if self.returncode is not None:
            msg += f" | exit {self.returncode}"
        if self.stderr:
            msg += f" | {self.stderr.strip()}"
        return msg


class ProbeError(MdeOpsError):
    """Raised when querying a single resource fails."""

    def __init__(
        self,
        message: str,
        resource_kind: Optional[str] = None,
        identifier: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.resource_kind = resource_kind
        self.identifier = identifier


class OperationAbortedError(MdeOpsError):
    """Raised when the operator declines to continue."""

    pass
