"""Tests for workflow hydration."""

import base64
import gzip

import pytest

from budharness.cluster.hydrator import (
    OffloadNodeStatusRepo,
    WorkflowHydrator,
    compress_nodes,
    decompress_nodes,
)
from budharness.cluster.schemas import WorkflowSnapshot
from budharness.commons.exceptions import HydrationError
from tests.helpers import make_workflow


NODES = {"wf-1": {"id": "wf-1", "phase": "Succeeded", "type": "Steps"}}


class FakeOffloadRepo(OffloadNodeStatusRepo):
    def __init__(self, nodes=None, error=None):
        self.nodes = nodes or {}
        self.error = error
        self.calls = []

    async def get(self, uid, version):
        self.calls.append((uid, version))
        if self.error is not None:
            raise self.error
        return self.nodes


def snapshot(**status) -> WorkflowSnapshot:
    return WorkflowSnapshot.from_object(make_workflow("wf-1", uid="uid-1", **status))


class TestWorkflowHydrator:
    """Tests for WorkflowHydrator."""

    @pytest.mark.asyncio
    async def test_inline_nodes_untouched(self) -> None:
        """Test that a snapshot with inline nodes is returned as is."""
        original = snapshot(nodes=NODES)
        hydrator = WorkflowHydrator()

        result = await hydrator.hydrate(original)

        assert result is original
        assert hydrator.is_hydrated(result)

    @pytest.mark.asyncio
    async def test_compressed_nodes(self) -> None:
        """Test that compressed nodes are decoded into a new snapshot."""
        original = snapshot(compressedNodes=compress_nodes(NODES))
        hydrator = WorkflowHydrator()

        assert not hydrator.is_hydrated(original)
        result = await hydrator.hydrate(original)

        assert result.status.nodes == NODES
        assert result.status.compressed_nodes is None
        assert hydrator.is_hydrated(result)
        # The input snapshot is left alone.
        assert original.status.compressed_nodes is not None
        assert original.status.nodes == {}

    @pytest.mark.asyncio
    async def test_offloaded_nodes(self) -> None:
        """Test that offloaded nodes are fetched by uid and version."""
        repo = FakeOffloadRepo(nodes=NODES)
        hydrator = WorkflowHydrator(offload_repo=repo)

        result = await hydrator.hydrate(snapshot(offloadNodeStatusVersion="fnv-123"))

        assert repo.calls == [("uid-1", "fnv-123")]
        assert result.status.nodes == NODES
        assert result.status.offload_node_status_version is None
        assert result.payload["status"]["nodes"] == NODES
        assert "offloadNodeStatusVersion" not in result.payload["status"]

    @pytest.mark.asyncio
    async def test_offloaded_without_repo(self) -> None:
        """Test that offloaded status with no repository configured fails."""
        with pytest.raises(HydrationError) as exc_info:
            await WorkflowHydrator().hydrate(snapshot(offloadNodeStatusVersion="fnv-123"))

        assert exc_info.value.workflow_name == "wf-1"

    @pytest.mark.asyncio
    async def test_repo_error_wrapped(self) -> None:
        """Test that a repository failure surfaces as a HydrationError."""
        repo = FakeOffloadRepo(error=ConnectionRefusedError("connection refused"))

        with pytest.raises(HydrationError) as exc_info:
            await WorkflowHydrator(offload_repo=repo).hydrate(snapshot(offloadNodeStatusVersion="fnv-1"))

        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.details["version"] == "fnv-1"
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_repo_hydration_error_not_rewrapped(self) -> None:
        """Test that a HydrationError from the repository propagates unchanged."""
        error = HydrationError("Offloaded nodes not found")
        repo = FakeOffloadRepo(error=error)

        with pytest.raises(HydrationError) as exc_info:
            await WorkflowHydrator(offload_repo=repo).hydrate(snapshot(offloadNodeStatusVersion="fnv-1"))

        assert exc_info.value is error


class TestNodeCompression:
    """Tests for the compressed node codec."""

    def test_decompress_matches_controller_encoding(self) -> None:
        """Test decoding a gzip+base64 payload built independently."""
        encoded = base64.b64encode(gzip.compress(b'{"a": {"phase": "Running"}}')).decode()

        assert decompress_nodes(encoded) == {"a": {"phase": "Running"}}

    @pytest.mark.parametrize(
        "payload",
        [
            "not-base64!!",
            base64.b64encode(b"plain text, not gzip").decode(),
            base64.b64encode(gzip.compress(b"{not json")).decode(),
        ],
    )
    def test_decompress_bad_payload(self, payload) -> None:
        """Test that undecodable payloads raise HydrationError."""
        with pytest.raises(HydrationError):
            decompress_nodes(payload, workflow_name="wf-1")
