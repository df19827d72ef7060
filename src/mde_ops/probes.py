"""
Resource probes.

One probe per resource kind. A probe queries the backing service for the
current state of a resource and decides whether the expectation is met.
An empty listing means "not found"; a failed query raises ProbeError.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from .core.config import TargetScope
from .core.errors import CloudCommandError, ProbeError
from .expectations import Expectation, ResourceKind
from .platform import (
    ClusterClient,
    CommandRunner,
    DataflowClient,
    PubSubClient,
    StorageClient,
    WarehouseClient,
)
from .platform.storage_client import normalize_uri


logger = logging.getLogger(__name__)

DEPLOYED = "deployed"

# CLIs the probes shell out to
REQUIRED_TOOLS = ("gcloud", "bq", "helm")


@dataclass(frozen=True)
class ProbeResult:
    """What a backing service reported for one kind and scope."""
    identifiers: FrozenSet[str] = frozenset()
    states: Mapping[str, str] = field(default_factory=dict)
    note: Optional[str] = None


@dataclass(frozen=True)
class Outcome:
    """Result of checking one expectation."""
    expectation: Expectation
    found: bool
    detail: Optional[str] = None
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        return "found" if self.found else "not_found"

    @property
    def passed(self) -> bool:
        return self.found and self.error is None

    @classmethod
    def failed(cls, expectation: Expectation, error: Exception) -> "Outcome":
        return cls(expectation=expectation, found=False, error=str(error))


class Probe(ABC):
    """Queries one kind of resource."""

    kind: ResourceKind

    @abstractmethod
    def query(self, expectation: Expectation) -> ProbeResult:
        """Fetch the current state relevant to an expectation."""

    def evaluate(self, expectation: Expectation, result: ProbeResult) -> Tuple[bool, Optional[str]]:
        """Exact membership of the identifier in the listing."""
        return expectation.identifier in result.identifiers, result.note

    def check(self, expectation: Expectation) -> Outcome:
        """
        Probe a single expectation.

        Raises:
            ProbeError: If the backing service could not be queried
        """
        try:
            result = self.query(expectation)
        except CloudCommandError as e:
            raise ProbeError(
                f"Could not query {expectation.kind.value} {expectation.identifier}",
                resource_kind=expectation.kind.value,
                identifier=expectation.identifier,
                cause=e,
            ) from e
        found, detail = self.evaluate(expectation, result)
        return Outcome(expectation=expectation, found=found, detail=detail)


class _ListingProbe(Probe):
    """Probe backed by one listing per scope, kept for the rest of the run."""

    def __init__(self):
        self._listings: Dict[str, ProbeResult] = {}

    @abstractmethod
    def list_scope(self, scope: str) -> FrozenSet[str]:
        """List the identifiers existing in a scope."""

    def query(self, expectation: Expectation) -> ProbeResult:
        scope = expectation.parent_scope
        if scope not in self._listings:
            self._listings[scope] = ProbeResult(identifiers=self.list_scope(scope))
            logger.debug(f"{self.kind.value} listing for {scope}: {len(self._listings[scope].identifiers)} entries")
        return self._listings[scope]


class TableProbe(_ListingProbe):
    kind = ResourceKind.TABLE

    def __init__(self, warehouse: WarehouseClient):
        super().__init__()
        self.warehouse = warehouse

    def list_scope(self, scope: str) -> FrozenSet[str]:
        return frozenset(self.warehouse.list_tables(scope))


class BucketProbe(_ListingProbe):
    kind = ResourceKind.BUCKET

    def __init__(self, storage: StorageClient):
        super().__init__()
        self.storage = storage

    def list_scope(self, scope: str) -> FrozenSet[str]:
        return frozenset(self.storage.list_buckets())

    def evaluate(self, expectation: Expectation, result: ProbeResult) -> Tuple[bool, Optional[str]]:
        return normalize_uri(expectation.identifier) in result.identifiers, None


class TopicProbe(_ListingProbe):
    kind = ResourceKind.TOPIC

    def __init__(self, pubsub: PubSubClient):
        super().__init__()
        self.pubsub = pubsub

    def list_scope(self, scope: str) -> FrozenSet[str]:
        return frozenset(self.pubsub.list_topics())


class JobProbe(Probe):
    """
    Active streaming jobs whose name starts with the identifier.

    Any active state counts as found, including Draining and Pending.
    """

    kind = ResourceKind.JOB

    def __init__(self, dataflow: DataflowClient):
        self.dataflow = dataflow

    def query(self, expectation: Expectation) -> ProbeResult:
        jobs = self.dataflow.list_jobs(status="active", name_prefix=expectation.identifier)
        return ProbeResult(
            identifiers=frozenset(job.id for job in jobs),
            states={job.id: job.state for job in jobs},
        )

    def evaluate(self, expectation: Expectation, result: ProbeResult) -> Tuple[bool, Optional[str]]:
        if not result.identifiers:
            return False, "no active job"
        states = ", ".join(sorted(set(result.states.values())))
        return True, f"{len(result.identifiers)} active ({states})"


class WorkloadProbe(Probe):
    """
    Helm releases in the workload's namespace on the MDE cluster.

    The cluster is resolved once. If it does not exist every workload under
    it is reported missing without querying Helm.
    """

    kind = ResourceKind.WORKLOAD

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster
        # cluster name -> kube context, or None if the cluster does not exist
        self._contexts: Dict[str, Optional[str]] = {}

    def _resolve_context(self, cluster_name: str) -> Optional[str]:
        if cluster_name not in self._contexts:
            info = self.cluster.find_cluster(cluster_name)
            if info is None:
                logger.warning(f"Could not find cluster {cluster_name}")
                self._contexts[cluster_name] = None
            else:
                logger.info(f"Found cluster {cluster_name} in {info.location}, getting credentials")
                self._contexts[cluster_name] = self.cluster.get_credentials(info)
        return self._contexts[cluster_name]

    def query(self, expectation: Expectation) -> ProbeResult:
        context = self._resolve_context(expectation.parent_scope)
        if context is None:
            return ProbeResult(note=f"cluster {expectation.parent_scope} not found")

        releases = self.cluster.list_releases(expectation.identifier, context)
        return ProbeResult(
            identifiers=frozenset(str(r.get("name") or "") for r in releases),
            states={str(r.get("name") or ""): str(r.get("status") or "") for r in releases},
        )

    def evaluate(self, expectation: Expectation, result: ProbeResult) -> Tuple[bool, Optional[str]]:
        if result.note:
            return False, result.note
        if not result.states:
            return False, "no helm release"
        deployed = [name for name, status in result.states.items() if status == DEPLOYED]
        if deployed:
            return True, f"release {', '.join(sorted(deployed))} deployed"
        states = ", ".join(f"{n}={s}" for n, s in sorted(result.states.items()))
        return False, f"no deployed release ({states})"


def build_probes(scope: TargetScope, runner: CommandRunner) -> Dict[ResourceKind, Probe]:
    """Create one probe per resource kind for a target deployment."""
    project_id = scope.project_id
    return {
        ResourceKind.TABLE: TableProbe(WarehouseClient(runner, project_id)),
        ResourceKind.WORKLOAD: WorkloadProbe(ClusterClient(runner, project_id)),
        ResourceKind.JOB: JobProbe(DataflowClient(runner, project_id)),
        ResourceKind.BUCKET: BucketProbe(StorageClient(runner, project_id)),
        ResourceKind.TOPIC: TopicProbe(PubSubClient(runner, project_id)),
    }
