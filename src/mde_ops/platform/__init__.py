"""
Platform clients for the cloud services an MDE deployment runs on.
"""

from .runner import CommandRunner, active_account
from .warehouse_client import WarehouseClient
from .cluster_client import ClusterClient, ClusterInfo
from .dataflow_client import DataflowClient, DataflowJob
from .storage_client import StorageClient
from .pubsub_client import PubSubClient
from .logging_client import LogsClient

__all__ = [
    "CommandRunner",
    "active_account",
    "WarehouseClient",
    "ClusterClient",
    "ClusterInfo",
    "DataflowClient",
    "DataflowJob",
    "StorageClient",
    "PubSubClient",
    "LogsClient",
]
