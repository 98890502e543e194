"""Condition waiter for workflows.

Opens a single watch on harness-managed workflows and races its events against
a timeout. Every event is hydrated before the predicate sees it, and the watch
is closed on every way out of ``wait``.

Usage:
    waiter = ConditionWaiter(client, hydrator)
    snapshot = await waiter.wait(
        ConditionSpec(
            predicate=lambda wf: wf.status.is_finished,
            description="to finish",
            timeout=120,
            workflow_name="hello-world-abc12",
        )
    )
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import structlog

from budharness.cluster.client import ResourceClient
from budharness.cluster.hydrator import Hydrator
from budharness.cluster.schemas import WorkflowSnapshot
from budharness.cluster.watch import WatchSession
from budharness.commons.constants import MANAGED_LABEL_SELECTOR, ResourceKind
from budharness.commons.exceptions import (
    ConditionTimeoutError,
    HydrationError,
    PreconditionError,
    WatchClosedError,
)
from budharness.commons.observability import get_logger
from budharness.fixtures.conditions import Predicate


logger = get_logger(__name__)


@dataclass(frozen=True)
class ConditionSpec:
    """What to wait for, on which workflow, and for how long."""

    predicate: Predicate
    description: str
    timeout: float
    # Empty matches any harness-managed workflow.
    workflow_name: str = ""
    label_selector: str = MANAGED_LABEL_SELECTOR

    @property
    def field_selector(self) -> str:
        if self.workflow_name:
            return f"metadata.name={self.workflow_name}"
        return ""


class ConditionWaiter:
    """Waits for a workflow snapshot that satisfies a predicate."""

    def __init__(self, client: ResourceClient, hydrator: Hydrator) -> None:
        self.client = client
        self.hydrator = hydrator

    async def wait(self, spec: ConditionSpec) -> WorkflowSnapshot:
        """Block until a watched workflow satisfies ``spec.predicate``.

        Returns:
            The hydrated snapshot that satisfied the predicate.

        Raises:
            ConditionTimeoutError: If nothing matched within ``spec.timeout``.
            UnexpectedObjectError: If an event did not carry a workflow.
            HydrationError: If an event could not be hydrated.
            WatchClosedError: If the stream ended before a match.
        """
        if spec.timeout <= 0:
            raise PreconditionError(
                f"Timeout must be positive, got {spec.timeout}",
                details={"condition": spec.description},
            )

        log = logger.bind(
            field_selector=spec.field_selector,
            condition=spec.description,
            timeout=spec.timeout,
        )
        log.info("Waiting for condition")
        started = time.monotonic()

        session = await self.client.watch(
            ResourceKind.WORKFLOW,
            label_selector=spec.label_selector,
            field_selector=spec.field_selector,
            timeout_seconds=spec.timeout,
        )
        try:
            snapshot = await asyncio.wait_for(self._first_match(session, spec, log), timeout=spec.timeout)
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - started
            log.error("Condition not met", elapsed=round(elapsed, 3))
            raise ConditionTimeoutError(
                spec.description,
                timeout_seconds=spec.timeout,
                elapsed_seconds=elapsed,
                workflow_name=spec.workflow_name or None,
            ) from None
        finally:
            await session.close()

        log.info("Condition met", workflow=snapshot.name, elapsed=round(time.monotonic() - started, 3))
        return snapshot

    async def _first_match(
        self,
        session: WatchSession,
        spec: ConditionSpec,
        log: structlog.stdlib.BoundLogger,
    ) -> WorkflowSnapshot:
        async for event in session:
            snapshot = WorkflowSnapshot.from_object(event.object, event_type=event.type.value)
            log.info(
                "Workflow event",
                workflow=snapshot.name,
                type=event.type.value,
                phase=snapshot.status.phase.value,
                message=snapshot.status.message,
            )
            snapshot = await self.hydrate(snapshot)
            if spec.predicate(snapshot):
                return snapshot

        raise WatchClosedError(spec.description, spec.workflow_name or None)

    async def hydrate(self, snapshot: WorkflowSnapshot) -> WorkflowSnapshot:
        try:
            return await self.hydrator.hydrate(snapshot)
        except HydrationError:
            raise
        except Exception as e:
            raise HydrationError(f"Failed to hydrate workflow: {e}", workflow_name=snapshot.name) from e
