"""Workflow hydration.

Large workflows do not carry their node status inline. The controller either
compresses it into ``status.compressedNodes`` (gzip, base64) or offloads it to
a database and records ``status.offloadNodeStatusVersion``. A hydrator turns
such a snapshot back into one with ``status.nodes`` populated.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import json
from abc import ABC, abstractmethod
from typing import Any

import asyncpg

from budharness.cluster.schemas import WorkflowSnapshot
from budharness.commons.exceptions import HydrationError
from budharness.commons.observability import get_logger


logger = get_logger(__name__)


class OffloadNodeStatusRepo(ABC):
    """Store of offloaded workflow node status."""

    @abstractmethod
    async def get(self, uid: str, version: str) -> dict[str, Any]:
        """Return the node map for a workflow uid at a given offload version."""


class PostgresOffloadNodeStatusRepo(OffloadNodeStatusRepo):
    """Reads offloaded nodes from the controller's ``argo_workflows`` table."""

    table_name = "argo_workflows"

    def __init__(self, dsn: str, cluster_name: str = "default") -> None:
        self.dsn = dsn
        self.cluster_name = cluster_name

    async def get(self, uid: str, version: str) -> dict[str, Any]:
        conn = await asyncpg.connect(dsn=self.dsn)
        try:
            row = await conn.fetchrow(
                f"select nodes from {self.table_name} where clustername = $1 and uid = $2 and version = $3",
                self.cluster_name,
                uid,
                version,
            )
        finally:
            await conn.close()

        if row is None:
            raise HydrationError(
                f"Offloaded nodes not found for uid {uid} version {version}",
                details={"uid": uid, "version": version},
            )
        nodes = row["nodes"]
        return json.loads(nodes) if isinstance(nodes, (str, bytes)) else dict(nodes)


class Hydrator(ABC):
    """Expands a snapshot's node status before conditions are evaluated."""

    @abstractmethod
    async def hydrate(self, snapshot: WorkflowSnapshot) -> WorkflowSnapshot:
        """Return a hydrated copy of ``snapshot``.

        Raises:
            HydrationError: If the node status cannot be expanded.
        """

    def is_hydrated(self, snapshot: WorkflowSnapshot) -> bool:
        return snapshot.status.is_hydrated


class WorkflowHydrator(Hydrator):
    """Hydrator for compressed and offloaded node status."""

    def __init__(self, offload_repo: OffloadNodeStatusRepo | None = None) -> None:
        self.offload_repo = offload_repo

    async def hydrate(self, snapshot: WorkflowSnapshot) -> WorkflowSnapshot:
        status = snapshot.status
        if status.compressed_nodes:
            nodes = decompress_nodes(status.compressed_nodes, snapshot.name)
            logger.debug("Decompressed nodes", workflow=snapshot.name, nodes=len(nodes))
            return snapshot.with_status(nodes=nodes, compressed_nodes=None)

        if status.offload_node_status_version:
            if self.offload_repo is None:
                raise HydrationError(
                    "Workflow has offloaded node status but no offload repository is configured",
                    workflow_name=snapshot.name,
                )
            try:
                nodes = await self.offload_repo.get(snapshot.identity.uid or "", status.offload_node_status_version)
            except HydrationError:
                raise
            except Exception as e:
                raise HydrationError(
                    f"Failed to fetch offloaded nodes: {e}",
                    workflow_name=snapshot.name,
                    details={"version": status.offload_node_status_version},
                ) from e
            logger.debug(
                "Fetched offloaded nodes",
                workflow=snapshot.name,
                version=status.offload_node_status_version,
                nodes=len(nodes),
            )
            return snapshot.with_status(nodes=nodes, offload_node_status_version=None)

        return snapshot


def compress_nodes(nodes: dict[str, Any]) -> str:
    """Encode a node map the way the controller does."""
    return base64.b64encode(gzip.compress(json.dumps(nodes).encode())).decode()


def decompress_nodes(compressed: str, workflow_name: str | None = None) -> dict[str, Any]:
    """Decode ``status.compressedNodes`` into a node map."""
    try:
        return json.loads(gzip.decompress(base64.b64decode(compressed)))
    except (binascii.Error, OSError, EOFError, ValueError) as e:
        raise HydrationError(f"Failed to decompress nodes: {e}", workflow_name=workflow_name) from e
