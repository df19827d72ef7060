"""
Command-line interface for the MDE operations toolkit.

Provides commands for:
- validate: Check a deployment's resources against the expected topology
- drain-jobs: Drain the running Dataflow jobs before an upgrade
- migrate-gcs: Move gcs-writer output into its versioned folder
- capture-logs: Collect diagnostic logs into a tarball
- config: Show the global configuration
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .core.config import GlobalConfig, TargetScope, get_config_file_path
from .core.errors import CloudCommandError, ConfigError, MdeOpsError, OperationAbortedError
from .drain import DrainAction, JobDrainer
from .expectations import ExpectationSet, Phase, read_catalog
from .log_capture import LogCapture
from .migration import GcsWriterMigration
from .platform import (
    CommandRunner,
    DataflowClient,
    LogsClient,
    StorageClient,
    WarehouseClient,
    active_account,
)
from .probes import REQUIRED_TOOLS
from .report import ConsoleReportSink, JsonReportSink
from .validator import TopologyValidator


console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip the confirmation prompt",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output (logs every cloud command)",
    )


def _add_validate_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_id",
        nargs="?",
        help="Google Cloud project of the deployment (default: MDE_PROJECT_ID / config)",
    )
    parser.add_argument(
        "dataset_name",
        nargs="?",
        help="BigQuery dataset of the deployment (default: MDE_DATASET_NAME / config)",
    )
    parser.add_argument(
        "--output-format", "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    _add_common_options(parser)


def create_parser() -> argparse.ArgumentParser:
    """Create the main CLI parser."""
    parser = argparse.ArgumentParser(
        prog="mde-ops",
        description="Operations toolkit for MDE deployments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mde-ops validate my-project sfp_data
  mde-ops drain-jobs my-project
  mde-ops migrate-gcs my-project
  mde-ops capture-logs my-project europe-west1 3
  mde-ops config show
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a deployment against the expected topology",
    )
    _add_validate_arguments(validate_parser)

    drain_parser = subparsers.add_parser(
        "drain-jobs",
        help="Drain all running MDE Dataflow jobs",
    )
    drain_parser.add_argument("project_id", nargs="?", help="Google Cloud project")
    _add_common_options(drain_parser)

    migrate_parser = subparsers.add_parser(
        "migrate-gcs",
        help="Move gcs-writer files into the v1 subfolder",
    )
    migrate_parser.add_argument("project_id", nargs="?", help="Google Cloud project")
    _add_common_options(migrate_parser)

    capture_parser = subparsers.add_parser(
        "capture-logs",
        help="Capture diagnostic logs into a tarball",
    )
    capture_parser.add_argument("project_id", help="Google Cloud project")
    capture_parser.add_argument("region", help="Region of the cluster and jobs")
    capture_parser.add_argument("days", type=int, help="Number of days to capture")
    capture_parser.add_argument(
        "bigquery_project_id",
        nargs="?",
        help="Project holding the sfp_data dataset (default: project_id)",
    )
    capture_parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path.cwd(),
        help="Where to write the capture (default: current directory)",
    )
    _add_common_options(capture_parser)

    config_parser = subparsers.add_parser(
        "config",
        help="Show global configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action", help="Config actions")
    config_subparsers.add_parser("show", help="Show current configuration")
    config_subparsers.add_parser("path", help="Show configuration file path")

    return parser


def _make_runner(config: GlobalConfig) -> CommandRunner:
    return CommandRunner(timeout=config.command_timeout)


def _confirm(title: str, lines: Sequence[str], question: str, assume_yes: bool) -> None:
    """Print the welcome banner and ask the operator to continue."""
    console.print(Panel("\n".join(lines), title=title, expand=False))
    if assume_yes:
        return
    if not Confirm.ask(question, default=True, console=console):
        raise OperationAbortedError("Cancelled by user")


def run_validate(args: argparse.Namespace) -> int:
    """Validate a deployment's topology."""
    config = GlobalConfig.load()
    scope = config.resolve_scope(args.project_id, args.dataset_name)
    expectations = ExpectationSet.from_catalog(scope)

    runner = _make_runner(config)
    runner.require(*REQUIRED_TOOLS)

    _confirm(
        f"MDE Deployment Validation for version {scope.version}",
        [
            f"This will check for basic configuration matching version [blue]{scope.version}[/blue]",
            f"PROJECT_ID set to [blue]{scope.project_id}[/blue]",
            f"DATASET_NAME set to [blue]{scope.dataset_name}[/blue]",
            f"You're authenticated as [blue]{active_account(runner) or 'unknown'}[/blue]",
        ],
        "Do you want to start the validation?",
        args.yes,
    )

    if args.output_format == "json":
        sink = JsonReportSink(console=Console())
    else:
        sink = ConsoleReportSink(console=console)

    validator = TopologyValidator.for_scope(expectations, runner, sink)
    validator.run()
    return validator.exit_code


def run_drain_jobs(args: argparse.Namespace) -> int:
    """Drain the running MDE Dataflow jobs."""
    config = GlobalConfig.load()
    scope = config.resolve_scope(args.project_id).require("project_id")

    runner = _make_runner(config)
    runner.require("gcloud")

    _confirm(
        "MDE Dataflow Jobs Draining",
        [
            "This will drain all currently running MDE dataflow jobs,",
            "which is needed in order to upgrade to the latest version of MDE.",
            "None of the data in flight should be lost as PubSub will act as buffer.",
            f"PROJECT_ID set to [blue]{scope.project_id}[/blue]",
            f"You're authenticated as [blue]{active_account(runner) or 'unknown'}[/blue]",
            "This command is intended to be run as a Dataflow Administrator.",
        ],
        "Are you sure you want to continue?",
        args.yes,
    )

    prefixes = [e.identifier for e in read_catalog(scope)[Phase.JOBS]]
    results = JobDrainer(DataflowClient(runner, scope.project_id), prefixes).drain_all()

    table = Table(title="Dataflow jobs")
    table.add_column("Job", style="cyan")
    table.add_column("Id")
    table.add_column("Action")
    for result in results:
        job_id = result.job.id if result.job else "-"
        action = result.action.value if result.action is not DrainAction.SKIPPED else f"skipped ({result.job.state})"
        table.add_row(result.prefix, job_id, action)
    console.print(table)
    return 0


def run_migrate_gcs(args: argparse.Namespace) -> int:
    """Move gcs-writer output into the v1 folder."""
    config = GlobalConfig.load()
    scope = config.resolve_scope(args.project_id).require("project_id")

    runner = _make_runner(config)
    runner.require("gcloud")
    migration = GcsWriterMigration(StorageClient(runner, scope.project_id), scope.project_id)

    _confirm(
        "MDE GCS Writer Migration",
        [
            "This is needed to upgrade from MDE 1.1.2 to 1.2: it moves all the gcs-writer files",
            "to a v1 subfolder to help when schema changes are implemented in future versions.",
            f"PROJECT_ID set to [blue]{scope.project_id}[/blue]",
            f"GCS WRITER BUCKET set to [blue]{migration.bucket}[/blue]",
            f"You're authenticated as [blue]{active_account(runner) or 'unknown'}[/blue]",
            "This command is intended to be run as a GCS Administrator.",
        ],
        "Are you sure you want to continue?",
        args.yes,
    )

    result = migration.run()
    if result.migrated:
        console.print(f"[green]✓[/green] Moved {result.moved} files in {result.bucket}")
    else:
        console.print(f"[green]✓[/green] Nothing to migrate in {result.bucket}")
    return 0


def run_capture_logs(args: argparse.Namespace) -> int:
    """Capture diagnostic logs."""
    config = GlobalConfig.load()
    scope = TargetScope(project_id=args.project_id, cluster_name=config.cluster_name).require("project_id")
    if not args.region:
        raise ConfigError("Region can not be empty")
    if args.days <= 0:
        raise ConfigError("Days to capture must be a positive number")
    bq_project = args.bigquery_project_id or scope.project_id

    runner = _make_runner(config)
    runner.require("gcloud", "bq")

    _confirm(
        "MDE Log Capturing",
        [
            "This captures logs of the MDE system in case of an issue:",
            "Config Manager, Federation API, Timeseries, all the dataflow jobs,",
            "and errors written to the OperationsDashboard and InsertErrors tables.",
            f"PROJECT_ID set to [blue]{scope.project_id}[/blue]",
            f"REGION set to [blue]{args.region}[/blue]",
            f"DAYS_TO_CAPTURE set to [blue]{args.days}[/blue]",
            f"BIGQUERY_PROJECT_ID set to [blue]{bq_project}[/blue]",
            f"You're authenticated as [blue]{active_account(runner) or 'unknown'}[/blue]",
        ],
        "Are you sure you want to continue?",
        args.yes,
    )

    capture = LogCapture(
        project_id=scope.project_id,
        region=args.region,
        days=args.days,
        logs=LogsClient(runner, scope.project_id),
        dataflow=DataflowClient(runner, scope.project_id),
        warehouse=WarehouseClient(runner, bq_project),
        cluster_name=scope.cluster_name,
        bigquery_project_id=bq_project,
    )
    result = capture.run(args.output_dir)
    console.print(f"[green]✓[/green] Logs can be found in [cyan]{result.archive}[/cyan]")
    return 0


def run_config(args: argparse.Namespace) -> int:
    """Show configuration."""
    if args.config_action == "path":
        console.print(str(get_config_file_path()))
        return 0

    config = GlobalConfig.load()
    table = Table(title="Global Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Config file", str(get_config_file_path()))
    table.add_row("Project ID", config.project_id or "[yellow]Not set[/yellow]")
    table.add_row("Dataset", config.dataset_name or "[yellow]Not set[/yellow]")
    table.add_row("Cluster", config.cluster_name)
    table.add_row("Command timeout", str(config.command_timeout) if config.command_timeout else "none")
    console.print(table)
    return 0


COMMANDS = {
    "validate": run_validate,
    "drain-jobs": run_drain_jobs,
    "migrate-gcs": run_migrate_gcs,
    "capture-logs": run_capture_logs,
    "config": run_config,
}


def _dispatch(handler, args: argparse.Namespace) -> int:
    try:
        return handler(args)
    except OperationAbortedError:
        console.print("[yellow]Cancelled.[/yellow]")
        return 1
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        return 1
    except CloudCommandError as e:
        console.print(f"[red]Execution failed![/red] {e} -> Stopping.")
        return 1
    except MdeOpsError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(getattr(args, "verbose", False))
    return _dispatch(COMMANDS[args.command], args)


def validate_topology_main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the standalone validate-topology command."""
    parser = argparse.ArgumentParser(
        prog="validate-topology",
        description="Validate an MDE deployment against the expected topology",
    )
    _add_validate_arguments(parser)
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    return _dispatch(run_validate, args)


if __name__ == "__main__":
    sys.exit(main())
