"""Then phase: assertions on what the scenario produced."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable

from budharness.cluster.schemas import WorkflowSnapshot
from budharness.commons.constants import MANAGED_LABEL_SELECTOR, ResourceKind
from budharness.commons.exceptions import PreconditionError
from budharness.commons.observability import get_logger
from budharness.fixtures.scenario import (
    ScenarioContext,
    ScenarioResult,
    Step,
    StepFunc,
    and_step,
    call_block,
    run_cli_step,
    run_steps,
)


if TYPE_CHECKING:
    from budharness.fixtures.when import WhenPhase


logger = get_logger(__name__)


@dataclass(frozen=True)
class ThenPhase:
    """Records assertions; carries no unsubmitted specs."""

    context: ScenarioContext
    steps: tuple[Step, ...] = ()

    def _step(self, name: str, apply: StepFunc) -> ThenPhase:
        return replace(self, steps=(*self.steps, Step(name, apply)))

    def expect_workflow(self, block: Callable[..., Any]) -> ThenPhase:
        """Call ``block(identity, status)`` with the current workflow."""
        return self._expect_workflow(None, block)

    def expect_workflow_name(self, workflow_name: str, block: Callable[..., Any]) -> ThenPhase:
        return self._expect_workflow(workflow_name, block)

    def _expect_workflow(self, workflow_name: str | None, block: Callable[..., Any]) -> ThenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            name = ctx.workflow_name if workflow_name is None else workflow_name
            if not name:
                raise PreconditionError("No workflow to check")
            logger.info("Checking expectation", workflow=name)
            obj = await ctx.client.get(ResourceKind.WORKFLOW, name)
            snapshot = await ctx.waiter().hydrate(WorkflowSnapshot.from_object(obj))
            await call_block(block, snapshot.identity, snapshot.status)
            return ctx

        return self._step(f"expect workflow {workflow_name or ''}".rstrip(), apply)

    def expect_workflow_list(
        self,
        block: Callable[[list[WorkflowSnapshot]], Any],
        label_selector: str = MANAGED_LABEL_SELECTOR,
    ) -> ThenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            waiter = ctx.waiter()
            items = await ctx.client.list(ResourceKind.WORKFLOW, label_selector)
            snapshots = [await waiter.hydrate(WorkflowSnapshot.from_object(item)) for item in items]
            logger.info("Checking workflow list", label_selector=label_selector, workflows=len(snapshots))
            await call_block(block, snapshots)
            return ctx

        return self._step("expect workflow list", apply)

    def expect_cron_workflow(self, block: Callable[[dict[str, Any], dict[str, Any]], Any]) -> ThenPhase:
        """Call ``block(metadata, status)`` with the current cron workflow."""

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if not ctx.cron_workflow_name:
                raise PreconditionError("No cron workflow to check")
            obj = await ctx.client.get(ResourceKind.CRON_WORKFLOW, ctx.cron_workflow_name)
            await call_block(block, obj.get("metadata") or {}, obj.get("status") or {})
            return ctx

        return self._step("expect cron workflow", apply)

    def and_(self, block: Callable[[], Any]) -> ThenPhase:
        return replace(self, steps=(*self.steps, and_step(block)))

    def run_cli(self, args: list[str], block: Callable[..., Any]) -> ThenPhase:
        return replace(self, steps=(*self.steps, run_cli_step(args, block)))

    def when(self) -> WhenPhase:
        from budharness.fixtures.when import WhenPhase

        return WhenPhase(context=self.context, steps=self.steps)

    async def run(self) -> ScenarioResult:
        return await run_steps(self.context, self.steps)
