"""
Expectation set: the resources a valid MDE deployment must expose.

The catalog ships with the package as YAML and is resolved against a
TargetScope once at startup. It is read-only afterwards.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import yaml

from .core.config import TargetScope
from .core.errors import ConfigError


logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    """Kinds of resource a deployment is made of."""
    TABLE = "table"
    WORKLOAD = "workload"
    JOB = "job"
    BUCKET = "bucket"
    TOPIC = "topic"


class Phase(Enum):
    """Validation phases, one per resource kind."""
    TABLES = "tables"
    WORKLOADS = "workloads"
    JOBS = "jobs"
    BUCKETS = "buckets"
    TOPICS = "topics"

    @property
    def kind(self) -> ResourceKind:
        return _PHASE_KINDS[self]

    @property
    def title(self) -> str:
        return _PHASE_TITLES[self]


_PHASE_KINDS = {
    Phase.TABLES: ResourceKind.TABLE,
    Phase.WORKLOADS: ResourceKind.WORKLOAD,
    Phase.JOBS: ResourceKind.JOB,
    Phase.BUCKETS: ResourceKind.BUCKET,
    Phase.TOPICS: ResourceKind.TOPIC,
}

_PHASE_TITLES = {
    Phase.TABLES: "BigQuery Tables",
    Phase.WORKLOADS: "GKE Workloads",
    Phase.JOBS: "Dataflow Jobs",
    Phase.BUCKETS: "GCS Buckets",
    Phase.TOPICS: "PubSub Topics",
}

# Workloads need cluster credentials that no later phase depends on
PHASE_ORDER: Tuple[Phase, ...] = (
    Phase.TABLES,
    Phase.WORKLOADS,
    Phase.JOBS,
    Phase.BUCKETS,
    Phase.TOPICS,
)


@dataclass(frozen=True)
class Expectation:
    """A resource the deployment must expose."""
    kind: ResourceKind
    identifier: str
    parent_scope: str

    def __str__(self) -> str:
        return f"{self.kind.value} {self.identifier} ({self.parent_scope})"


def default_catalog_path(version: str) -> Path:
    """Path of the packaged catalog for an MDE version."""
    return Path(str(resources.files("mde_ops") / "catalog" / f"topology-{version}.yaml"))


def read_catalog(scope: TargetScope, path: Optional[Path] = None) -> Dict[Phase, List[Expectation]]:
    """
    Read a catalog file and resolve its identifiers against a scope.

    Raises:
        ConfigError: If the project is empty or no catalog exists for the version
    """
    scope.require("project_id")
    path = path or default_catalog_path(scope.version)
    if not path.exists():
        raise ConfigError(
            f"No expectation catalog for version {scope.version}",
            details={"path": str(path)},
        )

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    values = {
        "project_id": scope.project_id,
        "dataset_name": scope.dataset_name,
        "cluster_name": scope.cluster_name,
    }
    raw_phases = data.get("phases") or {}
    phases: Dict[Phase, List[Expectation]] = {}
    for phase in PHASE_ORDER:
        section = raw_phases.get(phase.value) or {}
        parent_scope = str(section.get("scope", "{project_id}")).format(**values)
        phases[phase] = [
            Expectation(
                kind=phase.kind,
                identifier=str(name).format(**values),
                parent_scope=parent_scope,
            )
            for name in section.get("resources") or []
        ]
    logger.debug(f"Loaded {sum(len(v) for v in phases.values())} expectations from {path}")
    return phases


class ExpectationSet:
    """
    Ordered expectations grouped by phase.

    Expectations keep the order they were declared in so that reports are
    reproducible between runs.
    """

    def __init__(self, scope: TargetScope, phases: Dict[Phase, Sequence[Expectation]]):
        scope.require("project_id", "dataset_name")
        self.scope = scope
        self._phases: Dict[Phase, Tuple[Expectation, ...]] = {
            phase: tuple(phases.get(phase, ())) for phase in PHASE_ORDER
        }
        for phase, expectations in self._phases.items():
            for expectation in expectations:
                if expectation.kind is not phase.kind:
                    raise ConfigError(
                        f"Expectation {expectation} does not belong to phase {phase.value}",
                    )

    @classmethod
    def from_catalog(cls, scope: TargetScope, path: Optional[Path] = None) -> "ExpectationSet":
        """
        Build the expectation set from a catalog file.

        Args:
            scope: Target deployment
            path: Catalog file (defaults to the packaged one for scope.version)

        Returns:
            ExpectationSet with identifiers resolved against the scope
        """
        scope.require("project_id", "dataset_name")
        return cls(scope, read_catalog(scope, path))

    def list(self, phase: Phase) -> Tuple[Expectation, ...]:
        """Expectations of one phase in declaration order."""
        return self._phases[phase]

    def __iter__(self) -> Iterator[Expectation]:
        for phase in PHASE_ORDER:
            yield from self._phases[phase]

    def __len__(self) -> int:
        return sum(len(e) for e in self._phases.values())
