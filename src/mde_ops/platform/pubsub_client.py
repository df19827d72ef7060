"""
Pub/Sub client for topic listing.
"""

from typing import List

from .runner import CommandRunner, as_records


class PubSubClient:
    """Lists Pub/Sub topics of a project."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def list_topics(self) -> List[str]:
        """Return the short names of the project's topics."""
        cmd = (
            "gcloud", "pubsub", "topics", "list",
            f"--project={self.project_id}",
            "--format=json",
        )
        topics = []
        for entry in as_records(self.runner.run_json(*cmd), cmd):
            # projects/<project>/topics/<name>
            full_name = str(entry.get("name") or "")
            if full_name:
                topics.append(full_name.rsplit("/", 1)[-1])
        return topics
