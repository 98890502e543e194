"""When phase: submit, mutate and wait.

Every operation returns a new ``WhenPhase`` with one more recorded step.
Preconditions that only depend on the declared specs are checked right away;
the rest are checked when the step runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from budharness.commons.constants import MEMORY_QUOTA_NAME, STORAGE_QUOTA_NAME, ResourceKind
from budharness.commons.exceptions import PreconditionError, ResourceNotFoundError
from budharness.commons.observability import get_logger
from budharness.fixtures import conditions
from budharness.fixtures.conditions import Condition, Predicate
from budharness.fixtures.given import DesiredSpecs, GivenPhase
from budharness.fixtures.manifests import (
    config_map_manifest,
    manifest_name,
    memory_quota_manifest,
    storage_quota_manifest,
)
from budharness.fixtures.scenario import (
    ScenarioContext,
    ScenarioResult,
    Step,
    StepFunc,
    and_step,
    run_cli_step,
    run_steps,
)
from budharness.fixtures.then import ThenPhase
from budharness.fixtures.waiter import ConditionSpec


logger = get_logger(__name__)


@dataclass(frozen=True)
class WhenPhase:
    """Records the actions of a scenario."""

    context: ScenarioContext
    specs: DesiredSpecs = field(default_factory=DesiredSpecs)
    steps: tuple[Step, ...] = ()

    def _step(self, name: str, apply: StepFunc) -> WhenPhase:
        return replace(self, steps=(*self.steps, Step(name, apply)))

    def submit_workflow(self) -> WhenPhase:
        workflow = self.specs.workflow
        if workflow is None:
            raise PreconditionError("No workflow to submit")

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Submitting workflow", workflow=manifest_name(workflow))
            ref = await ctx.client.create(ResourceKind.WORKFLOW, workflow)
            logger.info("Workflow submitted", workflow=ref.name, uid=ref.uid)
            return ctx.evolve(workflow_name=ref.name)

        return self._step("submit workflow", apply)

    def create_workflow_event_binding(self) -> WhenPhase:
        binding = self.specs.workflow_event_binding
        if binding is None:
            raise PreconditionError("No workflow event to create")

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Creating workflow event", event=manifest_name(binding))
            await ctx.client.create(ResourceKind.WORKFLOW_EVENT_BINDING, binding)
            return ctx

        return self._step("create workflow event binding", apply)

    def create_workflow_templates(self) -> WhenPhase:
        return self._create_templates(ResourceKind.WORKFLOW_TEMPLATE, self.specs.workflow_templates)

    def create_cluster_workflow_templates(self) -> WhenPhase:
        return self._create_templates(ResourceKind.CLUSTER_WORKFLOW_TEMPLATE, self.specs.cluster_workflow_templates)

    def _create_templates(self, kind: ResourceKind, templates: tuple[dict[str, Any], ...]) -> WhenPhase:
        label = "workflow templates" if kind is ResourceKind.WORKFLOW_TEMPLATE else "cluster workflow templates"
        if not templates:
            raise PreconditionError(f"No {label} to create")

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            names = list(ctx.template_names)
            for template in templates:
                logger.info("Creating template", kind=kind.value, template=manifest_name(template))
                ref = await ctx.client.create(kind, template)
                names.append(ref.name)
                logger.info("Template created", kind=kind.value, template=ref.name)
            return ctx.evolve(template_names=tuple(names))

        return self._step(f"create {label}", apply)

    def create_cron_workflow(self) -> WhenPhase:
        cron_workflow = self.specs.cron_workflow
        if cron_workflow is None:
            raise PreconditionError("No cron workflow to create")

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Creating cron workflow", cron_workflow=manifest_name(cron_workflow))
            ref = await ctx.client.create(ResourceKind.CRON_WORKFLOW, cron_workflow)
            logger.info("Cron workflow created", uid=ref.uid)
            return ctx.evolve(cron_workflow_name=ref.name)

        return self._step("create cron workflow", apply)

    def wait_for_workflow_condition(
        self,
        condition: Condition | Predicate,
        description: str | None = None,
        timeout: float | None = None,
    ) -> WhenPhase:
        """Wait on the current workflow (or any managed one if none was submitted)."""
        if description is None:
            description = getattr(condition, "description", "condition")
        return self._wait(None, condition, description, timeout)

    def wait_for_workflow_to_start(self, timeout: float | None = None) -> WhenPhase:
        return self._wait(None, conditions.TO_START, conditions.TO_START.description, timeout, start=True)

    def wait_for_workflow(self, timeout: float | None = None) -> WhenPhase:
        return self._wait(None, conditions.TO_FINISH, conditions.TO_FINISH.description, timeout)

    def wait_for_workflow_name(self, workflow_name: str, timeout: float | None = None) -> WhenPhase:
        return self._wait(workflow_name, conditions.TO_FINISH, conditions.TO_FINISH.description, timeout)

    def _wait(
        self,
        workflow_name: str | None,
        predicate: Predicate,
        description: str,
        timeout: float | None,
        start: bool = False,
    ) -> WhenPhase:
        if timeout is not None and timeout <= 0:
            raise PreconditionError(f"Timeout must be positive, got {timeout}")

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if timeout is not None:
                effective_timeout = timeout
            elif start:
                effective_timeout = ctx.config.timeouts.workflow_start
            else:
                effective_timeout = ctx.config.timeouts.workflow_finish
            spec = ConditionSpec(
                predicate=predicate,
                description=description,
                timeout=effective_timeout,
                workflow_name=ctx.workflow_name if workflow_name is None else workflow_name,
            )
            snapshot = await ctx.waiter().wait(spec)
            return ctx.evolve(workflow_name=snapshot.name)

        return self._step(f"wait for workflow {description}", apply)

    def wait(self, seconds: float) -> WhenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Waiting", seconds=seconds)
            await asyncio.sleep(seconds)
            logger.info("Done waiting")
            return ctx

        return self._step(f"wait {seconds}s", apply)

    def delete_workflow(self) -> WhenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if not ctx.workflow_name:
                raise PreconditionError("No workflow to delete")
            logger.info("Deleting", workflow=ctx.workflow_name)
            await ctx.client.delete(ResourceKind.WORKFLOW, ctx.workflow_name)
            return ctx

        return self._step("delete workflow", apply)

    def and_(self, block: Callable[[], Any]) -> WhenPhase:
        return replace(self, steps=(*self.steps, and_step(block)))

    def run_cli(self, args: list[str], block: Callable[..., Any]) -> WhenPhase:
        return replace(self, steps=(*self.steps, run_cli_step(args, block)))

    def create_config_map(self, name: str, data: dict[str, str]) -> WhenPhase:
        """Create a config map, replacing any existing one with the same name."""
        body = config_map_manifest(name, data)

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            try:
                await ctx.client.delete(ResourceKind.CONFIG_MAP, name)
            except ResourceNotFoundError:
                pass
            logger.info("Creating config map", config_map=name)
            await ctx.client.create(ResourceKind.CONFIG_MAP, body)
            return ctx.evolve(config_map_name=name)

        return self._step(f"create config map {name}", apply)

    def delete_config_map(self) -> WhenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if ctx.config_map_name is None:
                raise PreconditionError("No config map to delete")
            logger.info("Deleting config map", config_map=ctx.config_map_name)
            await ctx.client.delete(ResourceKind.CONFIG_MAP, ctx.config_map_name, ignore_not_found=True)
            return ctx.evolve(config_map_name=None)

        return self._step("delete config map", apply)

    def memory_quota(self, quota: str) -> WhenPhase:
        body = memory_quota_manifest(MEMORY_QUOTA_NAME, quota)

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Creating memory quota", quota=quota)
            ref = await ctx.client.create(ResourceKind.RESOURCE_QUOTA, body)
            return ctx.evolve(memory_quota_name=ref.name)

        return self._step(f"memory quota {quota}", apply)

    def storage_quota(self, quota: str) -> WhenPhase:
        body = storage_quota_manifest(STORAGE_QUOTA_NAME, quota)

        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            logger.info("Creating storage quota", quota=quota)
            ref = await ctx.client.create(ResourceKind.RESOURCE_QUOTA, body)
            return ctx.evolve(storage_quota_name=ref.name)

        return self._step(f"storage quota {quota}", apply)

    def delete_memory_quota(self) -> WhenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if ctx.memory_quota_name is None:
                raise PreconditionError("No memory quota to delete")
            await ctx.client.delete(ResourceKind.RESOURCE_QUOTA, ctx.memory_quota_name)
            return ctx.evolve(memory_quota_name=None)

        return self._step("delete memory quota", apply)

    def delete_storage_quota(self) -> WhenPhase:
        async def apply(ctx: ScenarioContext) -> ScenarioContext:
            if ctx.storage_quota_name is None:
                raise PreconditionError("No storage quota to delete")
            await ctx.client.delete(ResourceKind.RESOURCE_QUOTA, ctx.storage_quota_name)
            return ctx.evolve(storage_quota_name=None)

        return self._step("delete storage quota", apply)

    def given(self) -> GivenPhase:
        return GivenPhase(context=self.context, specs=self.specs, steps=self.steps)

    def then(self) -> ThenPhase:
        async def narrow(ctx: ScenarioContext) -> ScenarioContext:
            return ctx.for_assertions()

        return ThenPhase(context=self.context, steps=(*self.steps, Step("then", narrow)))

    async def run(self) -> ScenarioResult:
        return await run_steps(self.context, self.steps)
