"""Pytest configuration and fixtures for budharness tests."""

from typing import Any

import pytest

from budharness.commons.config import HarnessConfig, TimeoutConfig, reset_config
from budharness.commons.observability import configure_structlog
from budharness.fixtures.given import GivenPhase
from budharness.fixtures.scenario import ScenarioContext
from tests.helpers import FakeCliRunner, FakeResourceClient, RecordingHydrator


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line("markers", "e2e: runs against a live cluster")


@pytest.fixture(scope="session", autouse=True)
def _structlog() -> None:
    configure_structlog(HarnessConfig(debug=True, log_level="DEBUG"))


@pytest.fixture(autouse=True)
def _reset_global_config():
    reset_config()
    yield
    reset_config()


# ============ Collaborator Fixtures ============


@pytest.fixture
def harness_config() -> HarnessConfig:
    """Config with short default timeouts so tests never wait long."""
    return HarnessConfig(
        namespace="argo",
        cli_binary="argo",
        timeouts=TimeoutConfig(workflow_start=1.0, workflow_finish=1.0, api_request=5, cli=5),
    )


@pytest.fixture
def fake_client() -> FakeResourceClient:
    return FakeResourceClient()


@pytest.fixture
def trace() -> list[tuple[str, Any]]:
    """Shared record of hydrate/predicate calls, in call order."""
    return []


@pytest.fixture
def hydrator(trace) -> RecordingHydrator:
    return RecordingHydrator(trace)


@pytest.fixture
def fake_cli() -> FakeCliRunner:
    return FakeCliRunner(output="argo: v3.5.0")


@pytest.fixture
def context(fake_client, hydrator, fake_cli, harness_config) -> ScenarioContext:
    return ScenarioContext(
        client=fake_client,
        hydrator=hydrator,
        cli=fake_cli,
        config=harness_config,
    )


@pytest.fixture
def given(context) -> GivenPhase:
    return GivenPhase(context=context)


@pytest.fixture
def workflow_manifest() -> dict[str, Any]:
    return {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Workflow",
        "metadata": {"generateName": "basic-"},
        "spec": {
            "entrypoint": "main",
            "templates": [{"name": "main", "container": {"image": "argoproj/argosay:v2"}}],
        },
    }
