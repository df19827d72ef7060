"""
Dataflow client for streaming job listing and draining.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .runner import CommandRunner, as_records


logger = logging.getLogger(__name__)

RUNNING = "Running"


def normalize_state(entry: Dict[str, Any]) -> str:
    """
    Read a job state from a gcloud listing entry.

    gcloud prints the short form ("Running"); the raw API form
    ("JOB_STATE_RUNNING") is converted to it.
    """
    state = entry.get("state")
    if state:
        return str(state)
    raw = str(entry.get("currentState") or "")
    if raw.startswith("JOB_STATE_"):
        raw = raw[len("JOB_STATE_"):]
    return raw.replace("_", " ").title().replace(" ", "")


@dataclass(frozen=True)
class DataflowJob:
    """A Dataflow job as listed by gcloud."""
    id: str
    name: str
    state: str
    region: str

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING


class DataflowClient:
    """Lists and drains Dataflow jobs."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def list_jobs(
        self,
        status: str = "active",
        name_prefix: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[DataflowJob]:
        """
        List jobs in the project.

        Args:
            status: gcloud --status value (active, terminated, all)
            name_prefix: Only jobs whose name starts with this prefix
            region: Restrict the listing to one region

        Returns:
            Jobs in listing order
        """
        cmd = [
            "gcloud", "dataflow", "jobs", "list",
            f"--project={self.project_id}",
            f"--status={status}",
            "--format=json",
        ]
        if name_prefix:
            cmd.append(f"--filter=name:{name_prefix}*")
        if region:
            cmd.append(f"--region={region}")

        jobs = []
        for entry in as_records(self.runner.run_json(*cmd), cmd):
            name = str(entry.get("name") or "")
            if name_prefix and not name.startswith(name_prefix):
                continue
            jobs.append(DataflowJob(
                id=str(entry.get("id") or ""),
                name=name,
                state=normalize_state(entry),
                region=entry.get("location") or entry.get("region", ""),
            ))
        return jobs

    def drain_job(self, job: DataflowJob) -> None:
        """Request a drain of a running job."""
        logger.debug(f"Draining {job.name} ({job.id}) in {job.region}")
        self.runner.run(
            "gcloud", "dataflow", "jobs", "drain", job.id,
            f"--region={job.region}",
            f"--project={self.project_id}",
        )
