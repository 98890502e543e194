"""
Shared pytest fixtures for E2E tests.

These tests drive a live cluster with the Argo controller installed and are
skipped unless E2E_KUBECONFIG points at a kubeconfig.
Settings are read from ``.env.e2e`` and the environment.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from budharness.commons.config import HarnessConfig
from budharness.fixtures.suite import Harness


# Load E2E test environment variables
load_dotenv(".env.e2e")

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture(scope="session")
def e2e_config() -> HarnessConfig:
    """Load E2E harness configuration."""
    if not os.getenv("E2E_KUBECONFIG"):
        pytest.skip("E2E_KUBECONFIG not set")
    return HarnessConfig.from_env()


@pytest.fixture
def harness(e2e_config) -> Harness:
    """Harness wired to the live cluster."""
    return Harness.from_config(e2e_config)


@pytest.fixture
def testdata() -> Path:
    return TESTDATA


def pytest_collection_modifyitems(config, items):
    """Add the e2e marker to every test in this directory."""
    here = str(Path(__file__).parent)
    for item in items:
        if str(item.fspath).startswith(here):
            item.add_marker(pytest.mark.e2e)
