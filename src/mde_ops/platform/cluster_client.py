"""
Cluster client for GKE cluster lookup and Helm release listing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .runner import CommandRunner, as_records


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterInfo:
    """A GKE cluster and the location it runs in."""
    name: str
    location: str


class ClusterClient:
    """Resolves clusters, fetches credentials and lists Helm releases."""

    def __init__(self, runner: CommandRunner, project_id: str):
        self.runner = runner
        self.project_id = project_id

    def find_cluster(self, name: str) -> Optional[ClusterInfo]:
        """Return the cluster with this exact name, or None if absent."""
        cmd = (
            "gcloud", "container", "clusters", "list",
            f"--project={self.project_id}",
            f"--filter=name:{name}",
            "--format=json",
        )
        for entry in as_records(self.runner.run_json(*cmd), cmd):
            if entry.get("name") == name:
                return ClusterInfo(name=name, location=entry.get("location") or entry.get("zone", ""))
        return None

    def get_credentials(self, cluster: ClusterInfo) -> str:
        """
        Fetch credentials for a cluster into the local kubeconfig.

        Returns:
            The kubeconfig context name gcloud created for the cluster
        """
        self.runner.run(
            "gcloud", "container", "clusters", "get-credentials", cluster.name,
            f"--location={cluster.location}",
            f"--project={self.project_id}",
        )
        context = f"gke_{self.project_id}_{cluster.location}_{cluster.name}"
        logger.debug(f"Using kube context {context}")
        return context

    def list_releases(self, namespace: str, kube_context: str) -> List[Dict[str, Any]]:
        """List the Helm releases installed in a namespace."""
        cmd = (
            "helm", "list",
            "-n", namespace,
            "--kube-context", kube_context,
            "-o", "json",
        )
        return as_records(self.runner.run_json(*cmd), cmd)
