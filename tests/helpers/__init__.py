"""Test helpers: fake collaborators for scenario and waiter tests."""

from tests.helpers.fake_cluster import (
    FakeCliRunner,
    FakeResourceClient,
    FakeWatchResponse,
    FakeWatchSession,
    RecordingHydrator,
    event,
    make_workflow,
)


__all__ = [
    "FakeCliRunner",
    "FakeResourceClient",
    "FakeWatchResponse",
    "FakeWatchSession",
    "RecordingHydrator",
    "event",
    "make_workflow",
]
