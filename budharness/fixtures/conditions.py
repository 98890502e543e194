"""Ready-made workflow conditions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from budharness.cluster.schemas import WorkflowSnapshot
from budharness.commons.constants import WorkflowPhase


Predicate = Callable[[WorkflowSnapshot], bool]


@dataclass(frozen=True)
class Condition:
    """A predicate paired with the description used in logs and failures."""

    predicate: Predicate
    description: str

    def __call__(self, snapshot: WorkflowSnapshot) -> bool:
        return self.predicate(snapshot)


def to_have_phase(phase: WorkflowPhase) -> Condition:
    """Condition met once the workflow reports ``phase``."""
    return Condition(lambda wf: wf.status.phase is phase, f"to be {phase.value.lower()}")


TO_START = Condition(lambda wf: wf.status.is_started, "to start")
TO_FINISH = Condition(lambda wf: wf.status.is_finished, "to finish")
TO_BE_RUNNING = to_have_phase(WorkflowPhase.RUNNING)
TO_BE_SUCCEEDED = to_have_phase(WorkflowPhase.SUCCEEDED)
TO_BE_FAILED = to_have_phase(WorkflowPhase.FAILED)
TO_BE_ERRORED = to_have_phase(WorkflowPhase.ERROR)
TO_BE_COMPLETED = Condition(lambda wf: WorkflowPhase.is_completed(wf.status.phase), "to be completed")
