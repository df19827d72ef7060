"""
Capture diagnostic logs of an MDE deployment into a tarball.

Collects, over a window of days:
- warning logs of every running Dataflow job (job messages and workers)
- error logs of the config-manager, timeseries and federation-api services
- failed OperationsDashboard rows, daily ingestion latencies and InsertErrors
"""

import logging
import tarfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .platform import DataflowClient, LogsClient, WarehouseClient


logger = logging.getLogger(__name__)

DATASET = "sfp_data"
SERVICES = ("config-manager", "timeseries", "federation-api")

# Sidecar container whose logs are noise for the service
_EXCLUDED_CONTAINERS = {"config-manager": "cloud-sql-proxy"}


def dataflow_log_filter(project_id: str, job_id: str, streams: List[str]) -> str:
    log_names = " OR ".join(
        f'"projects/{project_id}/logs/dataflow.googleapis.com%2F{stream}"' for stream in streams
    )
    return (
        f'resource.type="dataflow_step" AND resource.labels.job_id="{job_id}" '
        f"AND logName=({log_names}) AND severity>=WARNING"
    )


def service_log_filter(project_id: str, region: str, cluster_name: str, service: str) -> str:
    parts = [
        'resource.type="k8s_container"',
        f'resource.labels.project_id="{project_id}"',
        f'resource.labels.location="{region}"',
        f'resource.labels.cluster_name="{cluster_name}"',
        f'resource.labels.namespace_name="{service}"',
        f'labels.k8s-pod/app_kubernetes_io/instance="{service}"',
        f'labels.k8s-pod/app_kubernetes_io/name="{service}"',
        "severity>=ERROR",
    ]
    excluded = _EXCLUDED_CONTAINERS.get(service)
    if excluded:
        parts.append(f'NOT resource.labels.container_name="{excluded}"')
    return " ".join(parts)


def failed_operations_query(bq_project: str, days: int) -> str:
    return f"""SELECT *
FROM `{bq_project}.{DATASET}.OperationsDashboard`
WHERE DATE(eventTimestamp) >= DATE_SUB(CURRENT_DATE(), INTERVAL {days} DAY)
  AND status = "FAILED"
ORDER BY stepTimestamp DESC"""


def latency_query(bq_project: str, days: int) -> str:
    selects = []
    for label, table in (("numeric", "NumericDataSeries"), ("discrete", "DiscreteDataSeries")):
        selects.append(f"""SELECT
  "{label}" AS table,
  DATE(eventTimestamp) AS date,
  AVG(TIMESTAMP_DIFF(ingestTimestamp, eventTimestamp, MILLISECOND)) AS latency
FROM `{bq_project}.{DATASET}.{table}`
WHERE DATE(eventTimestamp) >= DATE_SUB(CURRENT_DATE(), INTERVAL {days} DAY)
GROUP BY 1, 2""")
    return "\nUNION ALL\n".join(selects) + "\nORDER BY date DESC"


def insert_errors_query(bq_project: str, days: int) -> str:
    return f"""SELECT *
FROM `{bq_project}.{DATASET}.InsertErrors`
WHERE DATE(insertTimestamp) >= DATE_SUB(CURRENT_DATE(), INTERVAL {days} DAY)
ORDER BY insertTimestamp DESC"""


@dataclass
class CaptureResult:
    folder: Path
    archive: Path
    files: List[Path] = field(default_factory=list)


class LogCapture:
    """Writes log and query captures to a folder and compresses it."""

    def __init__(
        self,
        project_id: str,
        region: str,
        days: int,
        logs: LogsClient,
        dataflow: DataflowClient,
        warehouse: WarehouseClient,
        cluster_name: str = "sfp-gke",
        bigquery_project_id: Optional[str] = None,
    ):
        self.project_id = project_id
        self.region = region
        self.days = days
        self.logs = logs
        self.dataflow = dataflow
        self.warehouse = warehouse
        self.cluster_name = cluster_name
        self.bigquery_project_id = bigquery_project_id or project_id
        self._files: List[Path] = []

    def run(self, output_dir: Path, now: Optional[datetime] = None) -> CaptureResult:
        """
        Capture everything into output_dir/mde-logs-<timestamp>.tar.gz.

        Raises:
            CloudCommandError: If any log read or query fails
        """
        now = now or datetime.now().astimezone()
        folder = Path(output_dir) / f"mde-logs-{now.strftime('%Y-%m-%d_%H-%M-%S')}"
        logger.info(f"Creating {folder.name} folder to save logs.")
        for sub in ("dataflow", "services", "bigquery"):
            (folder / sub).mkdir(parents=True)

        self._files = []
        self._capture_dataflow(folder / "dataflow")
        self._capture_services(folder / "services")
        self._capture_bigquery(folder / "bigquery")

        archive = folder.with_name(folder.name + ".tar.gz")
        logger.info("Compressing logs")
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(folder, arcname=folder.name)
        logger.info(f"Logs can be found in {archive}")
        return CaptureResult(folder=folder, archive=archive, files=list(self._files))

    def _write(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")
        self._files.append(path)

    def _capture_dataflow(self, folder: Path) -> None:
        jobs = [
            job for job in self.dataflow.list_jobs(status="active", region=self.region)
            if job.is_running
        ]
        logger.info(f"Capturing logs of {len(jobs)} Dataflow jobs")
        for job in jobs:
            logger.info(f"Capturing logs for job: {job.name} with JobId: {job.id}")
            job_filter = dataflow_log_filter(self.project_id, job.id, ["job-message", "launcher"])
            self._write(folder / f"{job.name}-job.json", self.logs.read(job_filter, self.days))
            worker_filter = dataflow_log_filter(self.project_id, job.id, ["worker", "worker-startup"])
            self._write(folder / f"{job.name}-worker.json", self.logs.read(worker_filter, self.days))

    def _capture_services(self, folder: Path) -> None:
        for service in SERVICES:
            logger.info(f"Capturing logs for {service}")
            log_filter = service_log_filter(self.project_id, self.region, self.cluster_name, service)
            self._write(folder / f"{service}.json", self.logs.read(log_filter, self.days))

    def _capture_bigquery(self, folder: Path) -> None:
        project = self.bigquery_project_id

        logger.info("Capturing OperationsDashboard messages")
        self._write(
            folder / "errors.json",
            self.warehouse.query(failed_operations_query(project, self.days), max_rows=100000),
        )

        logger.info("Capturing average ingestion latencies")
        self._write(
            folder / "latencies.txt",
            self.warehouse.query(latency_query(project, self.days), max_rows=1000, output_format="sparse"),
        )

        logger.info("Capturing BigQuery InsertErrors messages")
        self._write(
            folder / "insertErrors.json",
            self.warehouse.query(insert_errors_query(project, self.days), max_rows=10000),
        )
