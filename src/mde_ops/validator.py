"""
Topology validator.

Checks every expectation of an ExpectationSet against the live deployment,
phase by phase, and streams the outcomes to a report sink. A failed query
is recorded against its resource and validation moves on; only missing
configuration or missing tools stop the run.
"""

import logging
from typing import Mapping, Optional, Sequence

from .core.errors import ConfigError, ProbeError
from .expectations import PHASE_ORDER, Expectation, ExpectationSet, ResourceKind
from .platform import CommandRunner
from .probes import REQUIRED_TOOLS, Outcome, Probe, build_probes
from .report import ReportSink, Tally


logger = logging.getLogger(__name__)


class TopologyValidator:
    """Runs the validation phases in order against one deployment."""

    def __init__(
        self,
        expectations: ExpectationSet,
        probes: Mapping[ResourceKind, Probe],
        sink: ReportSink,
        runner: Optional[CommandRunner] = None,
        required_tools: Sequence[str] = REQUIRED_TOOLS,
    ):
        """
        Initialize validator.

        Args:
            expectations: Resources the deployment must expose
            probes: Probe for each resource kind
            sink: Receives every outcome as soon as it is known
            runner: Used to check the required tools before probing
            required_tools: CLIs that must be installed
        """
        missing = [kind.value for kind in ResourceKind if kind not in probes]
        if missing:
            raise ConfigError(f"No probe registered for: {', '.join(missing)}")
        self.expectations = expectations
        self.probes = probes
        self.sink = sink
        self.runner = runner
        self.required_tools = tuple(required_tools)

    @classmethod
    def for_scope(cls, expectations: ExpectationSet, runner: CommandRunner, sink: ReportSink) -> "TopologyValidator":
        """Validator wired to the cloud CLIs for the expectation set's scope."""
        return cls(
            expectations=expectations,
            probes=build_probes(expectations.scope, runner),
            sink=sink,
            runner=runner,
        )

    def run(self) -> Tally:
        """
        Validate every expectation.

        Returns:
            The final tally

        Raises:
            DependencyMissingError: If a required tool is not installed
        """
        if self.runner is not None:
            self.runner.require(*self.required_tools)

        scope = self.expectations.scope
        logger.info(f"Validating {len(self.expectations)} resources in project {scope.project_id}")

        for phase in PHASE_ORDER:
            expectations = self.expectations.list(phase)
            if not expectations:
                continue
            self.sink.phase_started(phase)
            for expectation in expectations:
                self.sink.record(self.check(expectation))

        self.sink.finish()
        return self.sink.tally

    def check(self, expectation: Expectation) -> Outcome:
        """Probe one expectation, turning a query failure into an error outcome."""
        probe = self.probes[expectation.kind]
        try:
            return probe.check(expectation)
        except ProbeError as e:
            logger.debug(f"Probe failed for {expectation}: {e}")
            return Outcome.failed(expectation, e.cause or e)

    @property
    def exit_code(self) -> int:
        return self.sink.exit_code
