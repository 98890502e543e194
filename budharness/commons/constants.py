"""Constants shared across the harness."""

from __future__ import annotations

from enum import Enum


# Every resource created by the harness carries this label so that watches and
# cleanup only ever see harness-managed objects.
MANAGED_LABEL_KEY = "argo-e2e"
MANAGED_LABEL_VALUE = "true"
MANAGED_LABEL_SELECTOR = MANAGED_LABEL_KEY

ARGO_GROUP = "argoproj.io"
ARGO_VERSION = "v1alpha1"
ARGO_API_VERSION = f"{ARGO_GROUP}/{ARGO_VERSION}"

DEFAULT_NAMESPACE = "argo"
MEMORY_QUOTA_NAME = "memory-quota"
STORAGE_QUOTA_NAME = "storage-quota"


class WorkflowPhase(str, Enum):
    """Phases reported in a workflow's status."""

    UNKNOWN = ""
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    ERROR = "Error"

    @classmethod
    def is_completed(cls, phase: str | WorkflowPhase) -> bool:
        """Check if phase is terminal."""
        return cls.normalize(phase) in {cls.SUCCEEDED, cls.FAILED, cls.ERROR}

    @classmethod
    def normalize(cls, phase: str | WorkflowPhase | None) -> WorkflowPhase:
        """Normalize a raw phase string to WorkflowPhase."""
        if isinstance(phase, cls):
            return phase
        if not phase:
            return cls.UNKNOWN

        for wp in cls:
            if wp.value.lower() == str(phase).lower():
                return wp

        return cls.UNKNOWN


class ResourceKind(str, Enum):
    """Kinds of objects the harness creates, deletes and watches."""

    WORKFLOW = "Workflow"
    WORKFLOW_EVENT_BINDING = "WorkflowEventBinding"
    WORKFLOW_TEMPLATE = "WorkflowTemplate"
    CLUSTER_WORKFLOW_TEMPLATE = "ClusterWorkflowTemplate"
    CRON_WORKFLOW = "CronWorkflow"
    CONFIG_MAP = "ConfigMap"
    RESOURCE_QUOTA = "ResourceQuota"

    @property
    def plural(self) -> str:
        """Plural resource name used in API paths."""
        return _PLURALS[self]

    @property
    def is_custom(self) -> bool:
        """Whether the kind is an Argo custom resource."""
        return self not in {ResourceKind.CONFIG_MAP, ResourceKind.RESOURCE_QUOTA}

    @property
    def is_namespaced(self) -> bool:
        """Whether objects of this kind live in a namespace."""
        return self is not ResourceKind.CLUSTER_WORKFLOW_TEMPLATE


_PLURALS = {
    ResourceKind.WORKFLOW: "workflows",
    ResourceKind.WORKFLOW_EVENT_BINDING: "workfloweventbindings",
    ResourceKind.WORKFLOW_TEMPLATE: "workflowtemplates",
    ResourceKind.CLUSTER_WORKFLOW_TEMPLATE: "clusterworkflowtemplates",
    ResourceKind.CRON_WORKFLOW: "cronworkflows",
    ResourceKind.CONFIG_MAP: "configmaps",
    ResourceKind.RESOURCE_QUOTA: "resourcequotas",
}
