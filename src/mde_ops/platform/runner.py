"""
Command runner for the managed-service CLIs (gcloud, bq, helm).

Every backing service is reached through its command-line tool. The runner
checks that the tools are installed, executes them as subprocesses and
decodes their JSON output.
"""

import json
import logging
import shutil
import subprocess
from typing import Any, Dict, List, Optional, Sequence

from mde_ops.core.errors import CloudCommandError, DependencyMissingError


logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs cloud CLI commands and returns their output."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize runner.

        Args:
            timeout: Optional per-command timeout in seconds
        """
        self.timeout = timeout

    def require(self, *tools: str) -> None:
        """Raise DependencyMissingError for the first tool not found on PATH."""
        for tool in tools:
            if shutil.which(tool) is None:
                raise DependencyMissingError(tool)

    def run(self, *cmd: str) -> str:
        """Run a command and return its stdout."""
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DependencyMissingError(cmd[0], cause=e) from e
        except subprocess.TimeoutExpired as e:
            raise CloudCommandError(
                f"Command timed out after {self.timeout}s: {cmd[0]}",
                command=cmd,
                cause=e,
            ) from e

        if proc.returncode != 0:
            raise CloudCommandError(
                f"Command failed: {' '.join(cmd[:3])}",
                command=cmd,
                returncode=proc.returncode,
                stderr=proc.stderr,
            )
        return proc.stdout

    def run_json(self, *cmd: str) -> Any:
        """Run a command producing JSON and return the decoded value."""
        output = self.run(*cmd)
        if not output.strip():
            return []
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise CloudCommandError(
                f"Malformed JSON from {cmd[0]}",
                command=cmd,
                cause=e,
            ) from e

    def run_lines(self, *cmd: str) -> List[str]:
        """Run a command and return its non-empty output lines."""
        return [line.strip() for line in self.run(*cmd).splitlines() if line.strip()]


def as_list(payload: Any, command: Sequence[str]) -> List[Any]:
    """Check that a decoded JSON payload is a list."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise CloudCommandError(
            f"Expected a JSON list from {command[0]}, got {type(payload).__name__}",
            command=command,
        )
    return payload


def as_records(payload: Any, command: Sequence[str]) -> List[Dict[str, Any]]:
    """Check that a decoded JSON payload is a list of objects."""
    records = as_list(payload, command)
    for entry in records:
        if not isinstance(entry, dict):
            raise CloudCommandError(
                f"Expected JSON objects from {command[0]}, got {type(entry).__name__}",
                command=command,
            )
    return records


def active_account(runner: CommandRunner) -> str:
    """Return the account gcloud is authenticated as, or an empty string."""
    try:
        return runner.run("gcloud", "config", "get-value", "account").strip()
    except CloudCommandError as e:
        logger.debug(f"Could not read active account: {e}")
        return ""
