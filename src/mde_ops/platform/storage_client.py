"""
Storage client for Cloud Storage listing and object moves.
"""

import logging
from typing import List

from mde_ops.core.errors import CloudCommandError

from .runner import CommandRunner


logger = logging.getLogger(__name__)

NO_MATCH_MARKER = "matched no objects"


def normalize_uri(uri: str) -> str:
    """Strip the trailing slash gcloud appends to bucket and folder URIs."""
    return uri.rstrip("/")


class StorageClient:
    """Lists buckets and objects, and moves objects between prefixes."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def list_buckets(self) -> List[str]:
        """Return the gs:// URIs of every bucket visible in the project."""
        lines = self.runner.run_lines(
            "gcloud", "storage", "ls", f"--project={self.project_id}",
        )
        return [normalize_uri(line) for line in lines if line.startswith("gs://")]

    def list_objects(self, pattern: str) -> List[str]:
        """
        List objects matching a wildcard URI.

        An empty match is returned as an empty list rather than an error.
        """
        try:
            lines = self.runner.run_lines(
                "gcloud", "storage", "ls", pattern, f"--project={self.project_id}",
            )
        except CloudCommandError as e:
            if NO_MATCH_MARKER in e.stderr:
                return []
            raise
        return [line for line in lines if line.startswith("gs://")]

    def move(self, source: str, destination: str) -> None:
        """Move objects matching source under the destination prefix."""
        logger.debug(f"Moving {source} -> {destination}")
        self.runner.run(
            "gcloud", "storage", "mv", source, destination,
            f"--project={self.project_id}",
        )
