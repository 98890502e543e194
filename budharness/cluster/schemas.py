"""Pydantic schemas for objects observed from the cluster."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from budharness.commons.constants import ARGO_GROUP, WorkflowPhase
from budharness.commons.exceptions import UnexpectedObjectError


class WatchEventType(str, Enum):
    """Event types delivered by a Kubernetes watch."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    ERROR = "ERROR"
    BOOKMARK = "BOOKMARK"


@dataclass(frozen=True)
class WatchEvent:
    """A single watch event; ``object`` is the raw decoded object."""

    type: WatchEventType
    object: Any

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> WatchEvent:
        """Build an event from the dict yielded by ``kubernetes.watch.Watch``."""
        try:
            event_type = WatchEventType(str(raw.get("type", "")).upper())
        except ValueError:
            event_type = WatchEventType.ERROR
        obj = raw.get("object")
        if obj is None:
            obj = raw.get("raw_object")
        return cls(type=event_type, object=obj)


@dataclass(frozen=True)
class ResourceRef:
    """Identity of an object returned by a create call."""

    kind: str
    name: str
    namespace: str | None = None
    uid: str | None = None


class ObjectIdentity(BaseModel):
    """Name, namespace and instance id of an observed object."""

    name: str
    namespace: str | None = None
    uid: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class WorkflowStatusView(BaseModel):
    """The parts of a workflow's status the harness reads."""

    phase: WorkflowPhase = WorkflowPhase.UNKNOWN
    started_at: datetime | None = Field(default=None, alias="startedAt")
    finished_at: datetime | None = Field(default=None, alias="finishedAt")
    message: str = ""
    nodes: dict[str, Any] = Field(default_factory=dict)
    compressed_nodes: str | None = Field(default=None, alias="compressedNodes")
    offload_node_status_version: str | None = Field(default=None, alias="offloadNodeStatusVersion")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("phase", mode="before")
    @classmethod
    def normalize_phase(cls, v: Any) -> WorkflowPhase:
        """Map unknown or empty phase strings to UNKNOWN."""
        return WorkflowPhase.normalize(v)

    @field_validator("message", mode="before")
    @classmethod
    def default_message(cls, v: Any) -> str:
        return v or ""

    @field_validator("nodes", mode="before")
    @classmethod
    def default_nodes(cls, v: Any) -> dict[str, Any]:
        return v or {}

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    @property
    def is_hydrated(self) -> bool:
        return not self.compressed_nodes and not self.offload_node_status_version


class WorkflowSnapshot(BaseModel):
    """Point-in-time view of a workflow as seen in one watch event.

    Snapshots are never mutated; hydration produces a new snapshot via
    ``with_status``.
    """

    identity: ObjectIdentity
    labels: dict[str, str] = Field(default_factory=dict)
    status: WorkflowStatusView = Field(default_factory=WorkflowStatusView)
    payload: dict[str, Any] = Field(default_factory=dict, repr=False)

    model_config = ConfigDict(frozen=True)

    @property
    def name(self) -> str:
        return self.identity.name

    @classmethod
    def from_object(cls, obj: Any, event_type: str | None = None) -> WorkflowSnapshot:
        """Interpret a raw watch object as a workflow.

        Raises:
            UnexpectedObjectError: If the object is not an Argo Workflow.
        """
        if not isinstance(obj, dict) or obj.get("kind") != "Workflow":
            raise UnexpectedObjectError("Workflow", obj, event_type=event_type)

        api_version = obj.get("apiVersion", "")
        if api_version and not api_version.startswith(f"{ARGO_GROUP}/"):
            raise UnexpectedObjectError("Workflow", obj, event_type=event_type)

        metadata = obj.get("metadata") or {}
        try:
            return cls(
                identity=ObjectIdentity.model_validate(metadata),
                labels=metadata.get("labels") or {},
                status=WorkflowStatusView.model_validate(obj.get("status") or {}),
                payload=obj,
            )
        except ValidationError as e:
            raise UnexpectedObjectError("Workflow", obj, event_type=event_type) from e

    def with_status(self, **changes: Any) -> WorkflowSnapshot:
        """Return a copy of this snapshot with status fields replaced.

        The same fields are replaced in a copy of ``payload["status"]``; fields
        set to None are dropped from it.
        """
        status = self.status.model_copy(update=changes)
        raw_status = dict(self.payload.get("status") or {})
        for key, value in status.model_dump(by_alias=True, mode="json", include=set(changes)).items():
            if value is None:
                raw_status.pop(key, None)
            else:
                raw_status[key] = value
        return self.model_copy(update={"status": status, "payload": {**self.payload, "status": raw_status}})
