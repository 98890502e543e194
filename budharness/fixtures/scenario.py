"""Scenario state and the fail-fast step driver.

Phases only record steps. ``run_steps`` executes them in order, threading a
``ScenarioContext`` from one step to the next, and stops at the first step that
raises: no later step runs.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Iterable

from budharness.cluster.cli import CliRunner
from budharness.cluster.client import ResourceClient
from budharness.cluster.hydrator import Hydrator
from budharness.commons.config import HarnessConfig, get_config
from budharness.commons.exceptions import PreconditionError, ScenarioFailedError
from budharness.commons.observability import get_logger
from budharness.fixtures.waiter import ConditionWaiter


logger = get_logger(__name__)


@dataclass(frozen=True)
class ScenarioContext:
    """Collaborator handles and the identifiers of resources a scenario made."""

    client: ResourceClient = field(repr=False)
    hydrator: Hydrator = field(repr=False)
    cli: CliRunner | None = field(default=None, repr=False)
    config: HarnessConfig = field(default_factory=get_config, repr=False)

    workflow_name: str = ""
    template_names: tuple[str, ...] = ()
    cron_workflow_name: str = ""
    config_map_name: str | None = None
    memory_quota_name: str | None = None
    storage_quota_name: str | None = None

    def evolve(self, **changes: Any) -> ScenarioContext:
        return replace(self, **changes)

    def for_assertions(self) -> ScenarioContext:
        """Keep only what assertions need; auxiliary objects are dropped."""
        return replace(
            self,
            config_map_name=None,
            memory_quota_name=None,
            storage_quota_name=None,
        )

    def waiter(self) -> ConditionWaiter:
        return ConditionWaiter(self.client, self.hydrator)


StepFunc = Callable[[ScenarioContext], Awaitable[ScenarioContext]]


@dataclass(frozen=True)
class Step:
    """A named, deferred chain operation."""

    name: str
    apply: StepFunc


@dataclass
class StepResult:
    """Outcome of one step."""

    name: str
    success: bool
    error: str | None = None
    elapsed_seconds: float = 0.0

    def __bool__(self) -> bool:
        return self.success


@dataclass
class ScenarioResult:
    """Final context and per-step outcomes of a completed scenario."""

    context: ScenarioContext
    results: list[StepResult] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        return sum(r.elapsed_seconds for r in self.results)

    def __bool__(self) -> bool:
        return all(self.results)


async def run_steps(context: ScenarioContext, steps: Iterable[Step]) -> ScenarioResult:
    """Run ``steps`` in order, stopping at the first failure.

    Raises:
        ScenarioFailedError: Wrapping the first step error, with the results
            of every step attempted so far.
    """
    results: list[StepResult] = []
    for step in steps:
        started = time.monotonic()
        try:
            context = await step.apply(context)
        except Exception as e:
            elapsed = time.monotonic() - started
            results.append(StepResult(name=step.name, success=False, error=str(e), elapsed_seconds=elapsed))
            logger.error("Step failed", step=step.name, error=str(e), elapsed=round(elapsed, 3))
            raise ScenarioFailedError(step.name, e, results) from e

        results.append(StepResult(name=step.name, success=True, elapsed_seconds=time.monotonic() - started))

    return ScenarioResult(context=context, results=results)


async def call_block(block: Callable[..., Any], *args: Any) -> None:
    """Call a user block; async blocks are awaited."""
    result = block(*args)
    if inspect.isawaitable(result):
        await result


def and_step(block: Callable[[], Any]) -> Step:
    async def apply(ctx: ScenarioContext) -> ScenarioContext:
        await call_block(block)
        return ctx

    return Step(f"and {getattr(block, '__name__', 'block')}", apply)


def run_cli_step(args: list[str], block: Callable[..., Any]) -> Step:
    """Step that runs the CLI and hands ``(output, error)`` to ``block``."""
    args = list(args)

    async def apply(ctx: ScenarioContext) -> ScenarioContext:
        if ctx.cli is None:
            raise PreconditionError("No CLI runner configured")
        result = await ctx.cli.run(args)
        await call_block(block, result.output, result.error)
        return ctx

    return Step(f"run cli {' '.join(args)}", apply)
