"""
Warehouse client for BigQuery operations through the bq CLI.
"""

import logging
from typing import List

from mde_ops.core.errors import CloudCommandError

from .runner import CommandRunner, as_records


logger = logging.getLogger(__name__)

# bq ls returns 50 entries unless told otherwise
MAX_LIST_RESULTS = 10000


class WarehouseClient:
    """Lists tables and runs read-only queries against BigQuery."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def list_tables(self, dataset_name: str) -> List[str]:
        """Return the table ids of a dataset, in listing order."""
        cmd = (
            "bq", "ls",
            "--format=json",
            f"--max_results={MAX_LIST_RESULTS}",
            f"{self.project_id}:{dataset_name}",
        )
        tables = []
        for entry in as_records(self.runner.run_json(*cmd), cmd):
            reference = entry.get("tableReference") or {}
            if not isinstance(reference, dict):
                raise CloudCommandError(
                    f"Unexpected tableReference in bq ls output for {dataset_name}",
                    command=cmd,
                )
            table_id = reference.get("tableId")
            if table_id:
                tables.append(str(table_id))
        logger.debug(f"Dataset {dataset_name} has {len(tables)} tables")
        return tables

    def query(self, sql: str, max_rows: int = 1000, output_format: str = "prettyjson") -> str:
        """
        Run a standard SQL query and return the raw bq output.

        Args:
            sql: Query text
            max_rows: Maximum rows returned by bq
            output_format: bq --format value (prettyjson, sparse, csv...)

        Returns:
            The query output as printed by bq
        """
        return self.runner.run(
            "bq",
            f"--project_id={self.project_id}",
            "query",
            "--use_legacy_sql=false",
            f"--max_rows={max_rows}",
            f"--format={output_format}",
            sql,
        )
