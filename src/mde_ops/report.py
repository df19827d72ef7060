"""
Report sinks for validation outcomes.

Outcomes are rendered as they arrive so a long validation shows progress.
The sink keeps the tally the exit status is derived from.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from .expectations import Phase, ResourceKind
from .probes import Outcome


_KIND_LABELS = {
    ResourceKind.TABLE: ("table", "in dataset"),
    ResourceKind.WORKLOAD: ("Helm deployment", "on cluster"),
    ResourceKind.JOB: ("DataFlow job", "in project"),
    ResourceKind.BUCKET: ("GCS bucket", "in project"),
    ResourceKind.TOPIC: ("PubSub topic", "in project"),
}


@dataclass
class Tally:
    """Running counts of outcomes."""
    found: int = 0
    not_found: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.found + self.not_found + self.errors

    @property
    def failed(self) -> int:
        return self.not_found + self.errors

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "found": self.found,
            "not_found": self.not_found,
            "errors": self.errors,
        }


class ReportSink:
    """Base sink: keeps the tally and the outcomes in arrival order."""

    def __init__(self):
        self.tally = Tally()
        self.outcomes: List[Outcome] = []

    def phase_started(self, phase: Phase) -> None:
        pass

    def record(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)
        if outcome.error is not None:
            self.tally.errors += 1
        elif outcome.found:
            self.tally.found += 1
        else:
            self.tally.not_found += 1
        self.render(outcome)

    def render(self, outcome: Outcome) -> None:
        pass

    def finish(self) -> None:
        pass

    @property
    def exit_code(self) -> int:
        return 1 if self.tally.failed else 0


class ConsoleReportSink(ReportSink):
    """Prints one line per outcome under a header per phase."""

    def __init__(self, console: Optional[Console] = None):
        super().__init__()
        self.console = console or Console(stderr=True)

    def phase_started(self, phase: Phase) -> None:
        self.console.print(f"--= Validation of [blue]{phase.title}[/blue] =--")

    def render(self, outcome: Outcome) -> None:
        expectation = outcome.expectation
        label, where = _KIND_LABELS[expectation.kind]
        name = escape(expectation.identifier)
        scope = escape(expectation.parent_scope)
        if outcome.error is not None:
            self.console.print(
                f"  [red]✗ Error:[/red] could not check {label} [red]{name}[/red] {where} {scope}"
                f" [dim]({escape(outcome.error)})[/dim]"
            )
        elif outcome.found:
            line = f"  [green]✓ Validated:[/green] found {label} [blue]{name}[/blue] {where} {scope}"
            if outcome.detail:
                line += f" [dim]({escape(outcome.detail)})[/dim]"
            self.console.print(line)
        else:
            line = f"  [red]✗ Not found:[/red] {label} [red]{name}[/red] {where} {scope}"
            if outcome.detail:
                line += f" [dim]({escape(outcome.detail)})[/dim]"
            self.console.print(line)

    def finish(self) -> None:
        tally = self.tally
        if tally.failed:
            self.console.print(
                f"\n[red]✗[/red] Validation failed ({tally.found}/{tally.total} found, "
                f"{tally.not_found} missing, {tally.errors} errors)"
            )
        else:
            self.console.print(f"\n[green]✓[/green] Validation passed ({tally.found}/{tally.total} found)")


class JsonReportSink(ReportSink):
    """Collects outcomes and writes a single JSON document at the end."""

    def __init__(self, console: Optional[Console] = None):
        super().__init__()
        self.console = console or Console()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": not self.tally.failed,
            "summary": self.tally.to_dict(),
            "outcomes": [
                {
                    "kind": o.expectation.kind.value,
                    "identifier": o.expectation.identifier,
                    "scope": o.expectation.parent_scope,
                    "status": o.status,
                    "detail": o.detail,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }

    def finish(self) -> None:
        self.console.print_json(json.dumps(self.to_dict()))
