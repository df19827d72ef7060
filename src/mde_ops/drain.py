"""
Drain the MDE Dataflow jobs ahead of an upgrade.

Pub/Sub buffers the messages in flight while the pipelines are down, so
draining loses no data. Only jobs in the Running state are drained; jobs
already draining or otherwise active are reported as-is.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .platform import DataflowClient, DataflowJob


logger = logging.getLogger(__name__)


class DrainAction(Enum):
    """What happened to a job prefix or a job."""
    DRAINED = "drained"
    SKIPPED = "skipped"        # active but not Running
    NOT_ACTIVE = "not_active"  # no active job for the prefix


@dataclass(frozen=True)
class DrainResult:
    prefix: str
    action: DrainAction
    job: Optional[DataflowJob] = None

    def __str__(self) -> str:
        if self.action is DrainAction.NOT_ACTIVE:
            return f"DataFlow job {self.prefix} not in active state"
        if self.action is DrainAction.DRAINED:
            return f"Draining DataFlow job {self.prefix} with id {self.job.id} in {self.job.region}"
        return (
            f"DataFlow job {self.prefix} with id {self.job.id} in {self.job.region} "
            f"is already in status: {self.job.state}"
        )


class JobDrainer:
    """Drains every running job matching a set of name prefixes."""

    def __init__(self, dataflow: DataflowClient, prefixes: Sequence[str]):
        self.dataflow = dataflow
        self.prefixes = tuple(prefixes)

    def drain_all(self) -> List[DrainResult]:
        """
        Drain running jobs prefix by prefix.

        Returns:
            One result per job, or one NOT_ACTIVE result per prefix without jobs

        Raises:
            CloudCommandError: If listing or draining fails
        """
        results: List[DrainResult] = []
        for prefix in self.prefixes:
            jobs = self.dataflow.list_jobs(status="active", name_prefix=prefix)
            if not jobs:
                result = DrainResult(prefix=prefix, action=DrainAction.NOT_ACTIVE)
                logger.warning(str(result))
                results.append(result)
                continue

            for job in jobs:
                if job.is_running:
                    result = DrainResult(prefix=prefix, action=DrainAction.DRAINED, job=job)
                    logger.info(str(result))
                    self.dataflow.drain_job(job)
                else:
                    result = DrainResult(prefix=prefix, action=DrainAction.SKIPPED, job=job)
                    logger.info(str(result))
                results.append(result)
        return results
