"""
Cloud Logging client for reading log entries.
"""

from .runner import CommandRunner


class LogsClient:
    """Reads Cloud Logging entries as JSON."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def read(self, log_filter: str, freshness_days: int) -> str:
        """
        Read entries matching a filter.

        Args:
            log_filter: Cloud Logging query
            freshness_days: How far back to read

        Returns:
            The entries as a JSON document
        """
        return self.runner.run(
            "gcloud", "logging", "read", log_filter,
            f"--project={self.project_id}",
            "--format=json",
            f"--freshness={freshness_days}d",
        )
