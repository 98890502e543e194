"""Given/when/then scenario fixtures."""

from budharness.fixtures.conditions import (
    TO_BE_COMPLETED,
    TO_BE_ERRORED,
    TO_BE_FAILED,
    TO_BE_RUNNING,
    TO_BE_SUCCEEDED,
    TO_FINISH,
    TO_START,
    Condition,
    to_have_phase,
)
from budharness.fixtures.given import DesiredSpecs, GivenPhase
from budharness.fixtures.scenario import ScenarioContext, ScenarioResult, Step, StepResult, run_steps
from budharness.fixtures.suite import Harness
from budharness.fixtures.then import ThenPhase
from budharness.fixtures.waiter import ConditionSpec, ConditionWaiter
from budharness.fixtures.when import WhenPhase


__all__ = [
    "TO_BE_COMPLETED",
    "TO_BE_ERRORED",
    "TO_BE_FAILED",
    "TO_BE_RUNNING",
    "TO_BE_SUCCEEDED",
    "TO_FINISH",
    "TO_START",
    "Condition",
    "ConditionSpec",
    "ConditionWaiter",
    "DesiredSpecs",
    "GivenPhase",
    "Harness",
    "ScenarioContext",
    "ScenarioResult",
    "Step",
    "StepResult",
    "ThenPhase",
    "WhenPhase",
    "run_steps",
    "to_have_phase",
]
