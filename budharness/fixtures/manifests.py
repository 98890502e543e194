"""Loading and building the manifests that scenarios submit."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Union

import yaml

from budharness.commons.constants import (
    ARGO_API_VERSION,
    MANAGED_LABEL_KEY,
    MANAGED_LABEL_VALUE,
    ResourceKind,
)
from budharness.commons.exceptions import PreconditionError


Manifest = Union[str, Path, dict[str, Any]]


def load_manifest(manifest: Manifest, kind: ResourceKind) -> dict[str, Any]:
    """Load a manifest and stamp it with the managed label.

    ``manifest`` may be a dict, YAML text, a ``Path``, or a string of the form
    ``@path/to/file.yaml``.
    """
    if isinstance(manifest, dict):
        body = copy.deepcopy(manifest)
    else:
        text = _read_text(manifest)
        try:
            body = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise PreconditionError(f"Invalid {kind.value} manifest: {e}") from e

    if not isinstance(body, dict):
        raise PreconditionError(f"{kind.value} manifest must be a mapping, got {type(body).__name__}")

    declared_kind = body.setdefault("kind", kind.value)
    if declared_kind != kind.value:
        raise PreconditionError(
            f"Expected a {kind.value} manifest, got {declared_kind}",
            details={"expected": kind.value, "received": declared_kind},
        )
    if kind.is_custom:
        body.setdefault("apiVersion", ARGO_API_VERSION)
    else:
        body.setdefault("apiVersion", "v1")

    metadata = body.get("metadata") or {}
    body["metadata"] = metadata
    if not metadata.get("name") and not metadata.get("generateName"):
        raise PreconditionError(f"{kind.value} manifest has neither name nor generateName")

    return stamp_managed_label(body)


def stamp_managed_label(body: dict[str, Any]) -> dict[str, Any]:
    """Add the managed label to ``body`` (and to a cron workflow's workflow metadata)."""
    metadata = body.get("metadata") or {}
    body["metadata"] = metadata
    labels = metadata.get("labels") or {}
    labels[MANAGED_LABEL_KEY] = MANAGED_LABEL_VALUE
    metadata["labels"] = labels

    if body.get("kind") == ResourceKind.CRON_WORKFLOW.value:
        # Workflows started by the cron workflow must be watchable too.
        spec = body.get("spec") or {}
        body["spec"] = spec
        wf_metadata = spec.get("workflowMetadata") or {}
        spec["workflowMetadata"] = wf_metadata
        wf_labels = wf_metadata.get("labels") or {}
        wf_labels[MANAGED_LABEL_KEY] = MANAGED_LABEL_VALUE
        wf_metadata["labels"] = wf_labels

    return body


def manifest_name(body: dict[str, Any]) -> str:
    metadata = body.get("metadata") or {}
    return metadata.get("name") or metadata.get("generateName") or ""


def config_map_manifest(name: str, data: dict[str, str]) -> dict[str, Any]:
    return stamp_managed_label(
        {
            "apiVersion": "v1",
            "kind": ResourceKind.CONFIG_MAP.value,
            "metadata": {"name": name},
            "data": dict(data),
        }
    )


def resource_quota_manifest(name: str, hard: dict[str, str]) -> dict[str, Any]:
    return stamp_managed_label(
        {
            "apiVersion": "v1",
            "kind": ResourceKind.RESOURCE_QUOTA.value,
            "metadata": {"name": name},
            "spec": {"hard": dict(hard)},
        }
    )


def memory_quota_manifest(name: str, quota: str) -> dict[str, Any]:
    """Hard quota on memory limits, e.g. ``quota="1G"``."""
    return resource_quota_manifest(name, {"limits.memory": quota})


def storage_quota_manifest(name: str, quota: str) -> dict[str, Any]:
    """Hard quota on requested storage, e.g. ``quota="5Mi"``."""
    return resource_quota_manifest(name, {"requests.storage": quota})


def _read_text(manifest: str | Path) -> str:
    if isinstance(manifest, Path):
        path = manifest
    elif manifest.startswith("@"):
        path = Path(manifest[1:])
    else:
        return manifest

    try:
        return path.read_text()
    except OSError as e:
        raise PreconditionError(f"Cannot read manifest {path}: {e}") from e
