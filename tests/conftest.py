"""
Pytest configuration and fixtures.
"""

import json

import pytest

from mde_ops.core.config import TargetScope
from mde_ops.core.errors import DependencyMissingError
from mde_ops.platform import CommandRunner


PROJECT = "demo-proj"
DATASET = "sfp_data"

CATALOG_RESOURCES = {
    "tables": [
        "NumericDataSeries", "DiscreteDataSeries", "ContinuousDataSeries",
        "ComponentDataSeries", "OperationsDashboard", "InsertErrors", "SchemaVersion",
    ],
    "workloads": ["config-manager", "federation-api", "timeseries", "workflows-deployer"],
    "jobs": [
        "gcs-reader", "message-payload-resolver", "tag-enricher", "tag-pipeline-runner",
        "event-change-transformer", "gcs-writer", "gcs-raw-writer", "bq-writer",
        "timeseries-writer", "ops-writer",
    ],
    "buckets": ["staging", "temp", "raw", "batch-ingestion", "config-manager-jobs"],
    "topics": [
        "input-messages", "tag-payload-resolved", "tag-type-resolved", "tag-enriched",
        "tag-alerts", "dead-letter", "ingestion-operations",
    ],
}


class FakeRunner(CommandRunner):
    """
    CommandRunner that answers from canned responses instead of running CLIs.

    A response matches a command when every one of its tokens appears in the
    command. The first registered match wins.
    """

    def __init__(self, missing_tools=()):
        super().__init__()
        self.responses = []
        self.calls = []
        self.required = []
        self.missing_tools = set(missing_tools)

    def on(self, *tokens, output="", error=None):
        self.responses.append((tokens, output, error))
        return self

    def on_json(self, *tokens, payload):
        return self.on(*tokens, output=json.dumps(payload))

    def require(self, *tools):
        for tool in tools:
            self.required.append(tool)
            if tool in self.missing_tools:
                raise DependencyMissingError(tool)

    def run(self, *cmd):
        self.calls.append(cmd)
        for tokens, output, error in self.responses:
            if all(token in cmd for token in tokens):
                if error is not None:
                    raise error
                return output
        raise AssertionError(f"Unexpected command: {cmd}")

    def calls_with(self, *tokens):
        return [cmd for cmd in self.calls if all(token in cmd for token in tokens)]


def _table_listing(names):
    return [
        {"tableReference": {"projectId": PROJECT, "datasetId": DATASET, "tableId": name}, "type": "TABLE"}
        for name in names
    ]


def _job_listing(name, state="Running", job_id=None, location="europe-west1"):
    return [{
        "id": job_id or f"job-{name}",
        "name": f"{name}-20240101",
        "state": state,
        "location": location,
        "type": "Streaming",
    }]


def _add_healthy_deployment(runner):
    """Register responses for a deployment exposing every catalog resource."""
    resources = CATALOG_RESOURCES
    runner.on("gcloud", "config", "get-value", "account", output="operator@example.com\n")
    runner.on_json("bq", "ls", f"{PROJECT}:{DATASET}", payload=_table_listing(resources["tables"] + ["Extra"]))
    runner.on_json(
        "gcloud", "container", "clusters", "list",
        payload=[{"name": "sfp-gke", "location": "europe-west1", "status": "RUNNING"}],
    )
    runner.on("gcloud", "container", "clusters", "get-credentials", output="")
    for workload in resources["workloads"]:
        runner.on_json(
            "helm", "list", workload,
            payload=[{"name": workload, "namespace": workload, "status": "deployed"}],
        )
    for job in resources["jobs"]:
        runner.on_json("gcloud", "dataflow", "jobs", "list", f"--filter=name:{job}*", payload=_job_listing(job))
    runner.on(
        "gcloud", "storage", "ls",
        output="".join(f"gs://{PROJECT}-{suffix}/\n" for suffix in resources["buckets"]) + "gs://unrelated/\n",
    )
    runner.on_json(
        "gcloud", "pubsub", "topics", "list",
        payload=[{"name": f"projects/{PROJECT}/topics/{topic}"} for topic in resources["topics"]],
    )
    return runner


@pytest.fixture
def scope() -> TargetScope:
    return TargetScope(project_id=PROJECT, dataset_name=DATASET)


@pytest.fixture
def catalog_resources():
    """Resource names of the packaged 1.2.0 catalog, bucket names as suffixes."""
    return {phase: list(names) for phase, names in CATALOG_RESOURCES.items()}


@pytest.fixture
def make_runner():
    """Factory for fake runners, optionally missing some tools."""
    def _make(missing_tools=()):
        return FakeRunner(missing_tools=missing_tools)
    return _make


@pytest.fixture
def fake_runner(make_runner) -> FakeRunner:
    return make_runner()


@pytest.fixture
def healthy_deployment():
    """Register a complete deployment on a fake runner; returns the runner."""
    return _add_healthy_deployment


@pytest.fixture
def healthy_runner(fake_runner, healthy_deployment) -> FakeRunner:
    return healthy_deployment(fake_runner)


@pytest.fixture
def job_listing():
    """Build a gcloud dataflow jobs listing with one job."""
    return _job_listing


@pytest.fixture
def table_listing():
    """Build a bq ls listing for table names."""
    return _table_listing


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the global config at an empty temp location and clear MDE_* variables."""
    config_file = tmp_path / "mde-ops" / "config.yaml"
    monkeypatch.setattr("mde_ops.core.config.CONFIG_FILE", config_file)
    for var in ("MDE_PROJECT_ID", "MDE_DATASET_NAME", "MDE_CLUSTER_NAME"):
        monkeypatch.delenv(var, raising=False)
    return config_file
