"""Given phase: declare the resources a scenario will create.

Nothing here talks to the cluster; manifests are only loaded and labelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from budharness.commons.constants import ResourceKind
from budharness.fixtures.manifests import Manifest, load_manifest
from budharness.fixtures.scenario import ScenarioContext, Step


if TYPE_CHECKING:
    from budharness.fixtures.when import WhenPhase


@dataclass(frozen=True)
class DesiredSpecs:
    """Manifests declared in the Given phase and not yet submitted."""

    workflow: dict[str, Any] | None = None
    workflow_event_binding: dict[str, Any] | None = None
    workflow_templates: tuple[dict[str, Any], ...] = ()
    cluster_workflow_templates: tuple[dict[str, Any], ...] = ()
    cron_workflow: dict[str, Any] | None = None


@dataclass(frozen=True)
class GivenPhase:
    """Builder for the desired specs of a scenario."""

    context: ScenarioContext
    specs: DesiredSpecs = field(default_factory=DesiredSpecs)
    steps: tuple[Step, ...] = ()

    def _with(self, **changes: Any) -> GivenPhase:
        return replace(self, specs=replace(self.specs, **changes))

    def workflow(self, manifest: Manifest) -> GivenPhase:
        return self._with(workflow=load_manifest(manifest, ResourceKind.WORKFLOW))

    def workflow_event_binding(self, manifest: Manifest) -> GivenPhase:
        return self._with(workflow_event_binding=load_manifest(manifest, ResourceKind.WORKFLOW_EVENT_BINDING))

    def workflow_template(self, manifest: Manifest) -> GivenPhase:
        template = load_manifest(manifest, ResourceKind.WORKFLOW_TEMPLATE)
        return self._with(workflow_templates=(*self.specs.workflow_templates, template))

    def cluster_workflow_template(self, manifest: Manifest) -> GivenPhase:
        template = load_manifest(manifest, ResourceKind.CLUSTER_WORKFLOW_TEMPLATE)
        return self._with(cluster_workflow_templates=(*self.specs.cluster_workflow_templates, template))

    def cron_workflow(self, manifest: Manifest) -> GivenPhase:
        return self._with(cron_workflow=load_manifest(manifest, ResourceKind.CRON_WORKFLOW))

    def when(self) -> WhenPhase:
        from budharness.fixtures.when import WhenPhase

        return WhenPhase(context=self.context, specs=self.specs, steps=self.steps)
