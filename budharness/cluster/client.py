"""Resource client used by scenarios to create, read, delete and watch objects.

The Kubernetes implementation runs the blocking ``kubernetes`` client calls in
a worker thread with ``asyncio.to_thread`` so scenarios stay on the event loop.
"""

from __future__ import annotations

import asyncio
import math
from abc import ABC, abstractmethod
from typing import Any, Callable

import urllib3.exceptions
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from budharness.cluster.schemas import ResourceRef
from budharness.cluster.watch import KubernetesWatchSession, WatchSession
from budharness.commons.config import HarnessConfig
from budharness.commons.constants import ARGO_GROUP, ARGO_VERSION, ResourceKind
from budharness.commons.exceptions import ResourceNotFoundError, ResourceOperationError
from budharness.commons.observability import get_logger


logger = get_logger(__name__)

# Extra seconds the server keeps a watch open past the caller's own timeout,
# so the caller's timer fires before the server ends the stream.
WATCH_GRACE_SECONDS = 5


class ResourceClient(ABC):
    """Remote operations on harness-managed objects."""

    @abstractmethod
    async def create(self, kind: ResourceKind, body: dict[str, Any]) -> ResourceRef:
        """Create an object and return its identity."""

    @abstractmethod
    async def get(self, kind: ResourceKind, name: str) -> dict[str, Any]:
        """Fetch a single object."""

    @abstractmethod
    async def list(self, kind: ResourceKind, label_selector: str = "") -> list[dict[str, Any]]:
        """List objects matching a label selector."""

    @abstractmethod
    async def delete(self, kind: ResourceKind, name: str, *, ignore_not_found: bool = False) -> None:
        """Delete an object.

        Raises:
            ResourceNotFoundError: If the object does not exist and
                ``ignore_not_found`` is false.
        """

    @abstractmethod
    async def delete_collection(self, kind: ResourceKind, label_selector: str) -> None:
        """Delete every object matching a label selector."""

    @abstractmethod
    async def watch(
        self,
        kind: ResourceKind,
        *,
        label_selector: str,
        field_selector: str = "",
        timeout_seconds: float | None = None,
    ) -> WatchSession:
        """Open a watch on objects matching the selectors."""


class KubernetesResourceClient(ResourceClient):
    """ResourceClient backed by the Kubernetes API."""

    def __init__(
        self,
        api_client: client.ApiClient,
        namespace: str,
        request_timeout: float | None = None,
    ) -> None:
        self.api_client = api_client
        self.namespace = namespace
        self.request_timeout = request_timeout
        self.custom_api = client.CustomObjectsApi(api_client)
        self.core_api = client.CoreV1Api(api_client)

    @classmethod
    def from_config(cls, harness_config: HarnessConfig) -> KubernetesResourceClient:
        """Build a client from kubeconfig settings."""
        api_client = config.new_client_from_config(
            config_file=harness_config.kubeconfig,
            context=harness_config.kube_context,
        )
        return cls(
            api_client,
            namespace=harness_config.namespace,
            request_timeout=harness_config.timeouts.api_request,
        )

    async def _call(
        self,
        kind: ResourceKind,
        name: str | None,
        operation: str,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if self.request_timeout:
            kwargs.setdefault("_request_timeout", self.request_timeout)
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError(kind.value, name) from e
            raise ResourceOperationError(
                f"Failed to {operation} {kind.value}: {e.reason}",
                kind=kind.value,
                name=name,
                status=e.status,
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise ResourceOperationError(
                f"Failed to {operation} {kind.value}: {e}",
                kind=kind.value,
                name=name,
            ) from e

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _custom_args(self, kind: ResourceKind) -> tuple[Any, ...]:
        if kind.is_namespaced:
            return (ARGO_GROUP, ARGO_VERSION, self.namespace, kind.plural)
        return (ARGO_GROUP, ARGO_VERSION, kind.plural)

    async def create(self, kind: ResourceKind, body: dict[str, Any]) -> ResourceRef:
        name = (body.get("metadata") or {}).get("name") or (body.get("metadata") or {}).get("generateName")
        if kind is ResourceKind.CONFIG_MAP:
            created = await self._call(
                kind, name, "create", self.core_api.create_namespaced_config_map, self.namespace, body
            )
        elif kind is ResourceKind.RESOURCE_QUOTA:
            created = await self._call(
                kind, name, "create", self.core_api.create_namespaced_resource_quota, self.namespace, body
            )
        elif kind.is_namespaced:
            created = await self._call(
                kind, name, "create", self.custom_api.create_namespaced_custom_object, *self._custom_args(kind), body
            )
        else:
            created = await self._call(
                kind, name, "create", self.custom_api.create_cluster_custom_object, *self._custom_args(kind), body
            )

        metadata = self._to_dict(created).get("metadata") or {}
        return ResourceRef(
            kind=kind.value,
            name=metadata.get("name", name or ""),
            namespace=metadata.get("namespace"),
            uid=metadata.get("uid"),
        )

    async def get(self, kind: ResourceKind, name: str) -> dict[str, Any]:
        if kind is ResourceKind.CONFIG_MAP:
            obj = await self._call(kind, name, "get", self.core_api.read_namespaced_config_map, name, self.namespace)
        elif kind is ResourceKind.RESOURCE_QUOTA:
            obj = await self._call(kind, name, "get", self.core_api.read_namespaced_resource_quota, name, self.namespace)
        elif kind.is_namespaced:
            obj = await self._call(
                kind, name, "get", self.custom_api.get_namespaced_custom_object, *self._custom_args(kind), name
            )
        else:
            obj = await self._call(
                kind, name, "get", self.custom_api.get_cluster_custom_object, *self._custom_args(kind), name
            )
        return self._to_dict(obj)

    async def list(self, kind: ResourceKind, label_selector: str = "") -> list[dict[str, Any]]:
        func, args = self._list_func(kind)
        result = self._to_dict(await self._call(kind, None, "list", func, *args, label_selector=label_selector))
        items = result.get("items") or []
        if not kind.is_custom:
            # Core list responses omit per-item kind.
            items = [{**item, "kind": kind.value} for item in items]
        return items

    async def delete(self, kind: ResourceKind, name: str, *, ignore_not_found: bool = False) -> None:
        if kind is ResourceKind.CONFIG_MAP:
            func, args = self.core_api.delete_namespaced_config_map, (name, self.namespace)
        elif kind is ResourceKind.RESOURCE_QUOTA:
            func, args = self.core_api.delete_namespaced_resource_quota, (name, self.namespace)
        elif kind.is_namespaced:
            func, args = self.custom_api.delete_namespaced_custom_object, (*self._custom_args(kind), name)
        else:
            func, args = self.custom_api.delete_cluster_custom_object, (*self._custom_args(kind), name)

        try:
            await self._call(kind, name, "delete", func, *args)
        except ResourceNotFoundError:
            if not ignore_not_found:
                raise
            logger.debug("Nothing to delete", kind=kind.value, name=name)

    async def delete_collection(self, kind: ResourceKind, label_selector: str) -> None:
        if kind is ResourceKind.CONFIG_MAP:
            func, args = self.core_api.delete_collection_namespaced_config_map, (self.namespace,)
        elif kind is ResourceKind.RESOURCE_QUOTA:
            func, args = self.core_api.delete_collection_namespaced_resource_quota, (self.namespace,)
        elif kind.is_namespaced:
            func, args = self.custom_api.delete_collection_namespaced_custom_object, self._custom_args(kind)
        else:
            func, args = self.custom_api.delete_collection_cluster_custom_object, self._custom_args(kind)
        await self._call(kind, None, "delete collection of", func, *args, label_selector=label_selector)

    def _list_func(self, kind: ResourceKind) -> tuple[Callable[..., Any], tuple[Any, ...]]:
        if kind is ResourceKind.CONFIG_MAP:
            return self.core_api.list_namespaced_config_map, (self.namespace,)
        if kind is ResourceKind.RESOURCE_QUOTA:
            return self.core_api.list_namespaced_resource_quota, (self.namespace,)
        if kind.is_namespaced:
            return self.custom_api.list_namespaced_custom_object, self._custom_args(kind)
        return self.custom_api.list_cluster_custom_object, self._custom_args(kind)

    async def watch(
        self,
        kind: ResourceKind,
        *,
        label_selector: str,
        field_selector: str = "",
        timeout_seconds: float | None = None,
    ) -> WatchSession:
        func, args = self._list_func(kind)
        kwargs: dict[str, Any] = {
            "label_selector": label_selector,
            "watch": True,
            "_preload_content": False,
            # Bound the connect only; reads wait for the next event.
            "_request_timeout": (self.request_timeout, None) if self.request_timeout else None,
        }
        if field_selector:
            kwargs["field_selector"] = field_selector
        if timeout_seconds:
            kwargs["timeout_seconds"] = math.ceil(timeout_seconds) + WATCH_GRACE_SECONDS

        response = await self._call(kind, None, "watch", func, *args, **kwargs)
        logger.debug("Watch opened", kind=kind.value, label_selector=label_selector, field_selector=field_selector)
        return KubernetesWatchSession(response, description=f"{kind.plural}?{label_selector}")
