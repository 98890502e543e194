"""Adapters for the cluster-side collaborators."""

from budharness.cluster.cli import CliResult, CliRunner
from budharness.cluster.client import KubernetesResourceClient, ResourceClient
from budharness.cluster.hydrator import (
    Hydrator,
    OffloadNodeStatusRepo,
    PostgresOffloadNodeStatusRepo,
    WorkflowHydrator,
)
from budharness.cluster.schemas import (
    ObjectIdentity,
    ResourceRef,
    WatchEvent,
    WatchEventType,
    WorkflowSnapshot,
    WorkflowStatusView,
)
from budharness.cluster.watch import KubernetesWatchSession, WatchSession


__all__ = [
    "CliResult",
    "CliRunner",
    "Hydrator",
    "KubernetesResourceClient",
    "KubernetesWatchSession",
    "ObjectIdentity",
    "OffloadNodeStatusRepo",
    "PostgresOffloadNodeStatusRepo",
    "ResourceClient",
    "ResourceRef",
    "WatchEvent",
    "WatchEventType",
    "WatchSession",
    "WorkflowHydrator",
    "WorkflowSnapshot",
    "WorkflowStatusView",
]
