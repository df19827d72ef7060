"""
MDE Operations Toolkit

Validates the topology of an MDE deployment (BigQuery tables, GKE workloads,
Dataflow jobs, GCS buckets and Pub/Sub topics) and runs the operator tasks
needed around an upgrade.
"""

__version__ = "1.2.0"

from .core.config import GlobalConfig, TargetScope
from .core.errors import (
    MdeOpsError,
    ConfigError,
    DependencyMissingError,
    CloudCommandError,
    ProbeError,
)
from .expectations import Expectation, ExpectationSet, Phase, ResourceKind, PHASE_ORDER
from .probes import Outcome, Probe, ProbeResult, build_probes
from .report import ReportSink, ConsoleReportSink, JsonReportSink
from .validator import TopologyValidator

__all__ = [
    "__version__",
    # Core
    "GlobalConfig",
    "TargetScope",
    "MdeOpsError",
    "ConfigError",
    "DependencyMissingError",
    "CloudCommandError",
    "ProbeError",
    # Validation
    "Expectation",
    "ExpectationSet",
    "Phase",
    "ResourceKind",
    "PHASE_ORDER",
    "Outcome",
    "Probe",
    "ProbeResult",
    "build_probes",
    "ReportSink",
    "ConsoleReportSink",
    "JsonReportSink",
    "TopologyValidator",
]
