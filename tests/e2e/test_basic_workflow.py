"""
E2E Tests for basic workflow scenarios.

Test Cases Covered:
- Submit a workflow and wait for it to succeed
- A failing workflow reaches the Failed phase
- Config map upsert and delete around a workflow
- CLI output for a submitted workflow
"""

import pytest

from budharness.commons.constants import WorkflowPhase
from budharness.fixtures import TO_BE_FAILED, TO_START
from budharness.fixtures.suite import Harness


@pytest.mark.e2e
class TestBasicWorkflow:
    """Test cases for submitting and observing workflows."""

    @pytest.mark.asyncio
    async def test_workflow_succeeds(self, harness: Harness, testdata) -> None:
        """Test that a basic workflow runs to success."""
        await harness.delete_resources()

        def succeeded(identity, status):
            assert status.phase is WorkflowPhase.SUCCEEDED
            assert status.is_finished
            assert status.nodes

        result = await (
            harness.given()
            .workflow(testdata / "basic-workflow.yaml")
            .when()
            .submit_workflow()
            .wait_for_workflow_condition(TO_START)
            .wait_for_workflow()
            .then()
            .expect_workflow(succeeded)
            .run()
        )

        assert result
        assert result.context.workflow_name.startswith("basic-")

    @pytest.mark.asyncio
    async def test_workflow_fails(self, harness: Harness, testdata) -> None:
        """Test that a failing workflow is observed as failed."""
        await harness.delete_resources()

        def failed(identity, status):
            assert status.phase is WorkflowPhase.FAILED

        result = await (
            harness.given()
            .workflow(testdata / "failing-workflow.yaml")
            .when()
            .submit_workflow()
            .wait_for_workflow_condition(TO_BE_FAILED)
            .then()
            .expect_workflow(failed)
            .run()
        )

        assert result

    @pytest.mark.asyncio
    async def test_config_map_lifecycle(self, harness: Harness, testdata) -> None:
        """Test that a config map can be upserted twice and deleted."""
        await harness.delete_resources()

        result = await (
            harness.given()
            .workflow(testdata / "basic-workflow.yaml")
            .when()
            .create_config_map("e2e-config", {"greeting": "hello"})
            .create_config_map("e2e-config", {"greeting": "hi"})
            .submit_workflow()
            .wait_for_workflow()
            .delete_config_map()
            .run()
        )

        assert result.context.config_map_name is None

    @pytest.mark.asyncio
    async def test_cli_get(self, harness: Harness, testdata) -> None:
        """Test that the CLI reports the submitted workflow."""
        await harness.delete_resources()
        outputs = []

        def capture(output, err):
            assert err is None, output
            outputs.append(output)

        result = await (
            harness.given()
            .workflow(testdata / "basic-workflow.yaml")
            .when()
            .submit_workflow()
            .wait_for_workflow()
            .then()
            .run_cli(["list"], capture)
            .run()
        )

        assert result
        assert result.context.workflow_name in outputs[0]
