"""Entry point for scenarios against a live cluster."""

from __future__ import annotations

from budharness.cluster.cli import CliRunner
from budharness.cluster.client import KubernetesResourceClient
from budharness.cluster.hydrator import PostgresOffloadNodeStatusRepo, WorkflowHydrator
from budharness.commons.config import HarnessConfig, get_config
from budharness.commons.constants import MANAGED_LABEL_SELECTOR, ResourceKind
from budharness.commons.exceptions import ResourceNotFoundError
from budharness.commons.observability import get_logger
from budharness.fixtures.given import GivenPhase
from budharness.fixtures.scenario import ScenarioContext


logger = get_logger(__name__)

# Workflows go first so nothing new is spawned from templates being deleted.
CLEANUP_ORDER = (
    ResourceKind.WORKFLOW,
    ResourceKind.CRON_WORKFLOW,
    ResourceKind.WORKFLOW_EVENT_BINDING,
    ResourceKind.WORKFLOW_TEMPLATE,
    ResourceKind.CLUSTER_WORKFLOW_TEMPLATE,
    ResourceKind.CONFIG_MAP,
    ResourceKind.RESOURCE_QUOTA,
)


class Harness:
    """Holds the collaborators every scenario starts from.

    Usage:
        harness = Harness.from_config()
        await harness.delete_resources()
        await (
            harness.given()
            .workflow("@testdata/basic-workflow.yaml")
            .when()
            .submit_workflow()
            .wait_for_workflow(timeout=60)
            .then()
            .expect_workflow(lambda identity, status: ...)
            .run()
        )
    """

    def __init__(self, context: ScenarioContext) -> None:
        self.context = context

    @classmethod
    def from_config(cls, config: HarnessConfig | None = None) -> Harness:
        config = config or get_config()
        offload_repo = None
        if config.offload_dsn:
            offload_repo = PostgresOffloadNodeStatusRepo(config.offload_dsn, cluster_name=config.cluster_name)

        context = ScenarioContext(
            client=KubernetesResourceClient.from_config(config),
            hydrator=WorkflowHydrator(offload_repo),
            cli=CliRunner(config.cli_binary, config.namespace, timeout=config.timeouts.cli),
            config=config,
        )
        return cls(context)

    def given(self) -> GivenPhase:
        return GivenPhase(context=self.context)

    async def delete_resources(self) -> None:
        """Delete every harness-managed object, kind by kind."""
        for kind in CLEANUP_ORDER:
            logger.info("Deleting resources", kind=kind.value, label_selector=MANAGED_LABEL_SELECTOR)
            try:
                await self.context.client.delete_collection(kind, MANAGED_LABEL_SELECTOR)
            except ResourceNotFoundError:
                # Kind not installed on this cluster.
                logger.debug("Nothing to delete", kind=kind.value)
