"""Tests for manifest loading and labelling."""

import pytest

from budharness.commons.constants import MANAGED_LABEL_KEY, ResourceKind
from budharness.commons.exceptions import PreconditionError
from budharness.fixtures.manifests import (
    config_map_manifest,
    load_manifest,
    manifest_name,
    storage_quota_manifest,
)


WORKFLOW_YAML = """
apiVersion: argoproj.io/v1alpha1
kind: Workflow
metadata:
  generateName: basic-
  labels:
    team: e2e
spec:
  entrypoint: main
  templates:
    - name: main
      container:
        image: argoproj/argosay:v2
"""


class TestLoadManifest:
    """Tests for load_manifest."""

    def test_yaml_text(self) -> None:
        """Test loading YAML text keeps existing labels and adds the managed one."""
        body = load_manifest(WORKFLOW_YAML, ResourceKind.WORKFLOW)

        assert body["metadata"]["labels"] == {"team": "e2e", MANAGED_LABEL_KEY: "true"}
        assert manifest_name(body) == "basic-"
        assert body["spec"]["entrypoint"] == "main"

    def test_at_file(self, tmp_path) -> None:
        """Test loading from an @path reference."""
        path = tmp_path / "basic.yaml"
        path.write_text(WORKFLOW_YAML)

        body = load_manifest(f"@{path}", ResourceKind.WORKFLOW)

        assert body["metadata"]["generateName"] == "basic-"

    def test_path_object(self, tmp_path) -> None:
        """Test loading from a Path."""
        path = tmp_path / "basic.yaml"
        path.write_text(WORKFLOW_YAML)

        assert load_manifest(path, ResourceKind.WORKFLOW)["kind"] == "Workflow"

    def test_dict_is_copied(self) -> None:
        """Test that the caller's dict is not modified."""
        manifest = {"kind": "WorkflowTemplate", "metadata": {"name": "tmpl"}}

        body = load_manifest(manifest, ResourceKind.WORKFLOW_TEMPLATE)

        assert "labels" not in manifest["metadata"]
        assert body["apiVersion"] == "argoproj.io/v1alpha1"
        assert body["metadata"]["labels"] == {MANAGED_LABEL_KEY: "true"}

    def test_missing_kind_defaults(self) -> None:
        """Test that a manifest without a kind takes the expected one."""
        body = load_manifest({"metadata": {"name": "b"}}, ResourceKind.WORKFLOW_EVENT_BINDING)

        assert body["kind"] == "WorkflowEventBinding"

    def test_cron_workflow_labels_spawned_workflows(self) -> None:
        """Test that workflows spawned by a cron workflow carry the managed label too."""
        manifest = {
            "kind": "CronWorkflow",
            "metadata": {"name": "cron"},
            "spec": {"schedule": "* * * * *", "workflowMetadata": {"labels": {"a": "b"}}},
        }

        body = load_manifest(manifest, ResourceKind.CRON_WORKFLOW)

        assert body["spec"]["workflowMetadata"]["labels"] == {"a": "b", MANAGED_LABEL_KEY: "true"}

    def test_kind_mismatch(self) -> None:
        """Test that a manifest of the wrong kind is rejected."""
        with pytest.raises(PreconditionError, match="Expected a CronWorkflow manifest, got Workflow"):
            load_manifest(WORKFLOW_YAML, ResourceKind.CRON_WORKFLOW)

    def test_missing_name(self) -> None:
        """Test that a manifest without name or generateName is rejected."""
        with pytest.raises(PreconditionError, match="neither name nor generateName"):
            load_manifest({"kind": "Workflow", "metadata": {}}, ResourceKind.WORKFLOW)

    def test_empty_metadata_block(self) -> None:
        """Test that a metadata key with no value is rejected as missing a name."""
        with pytest.raises(PreconditionError, match="neither name nor generateName"):
            load_manifest("kind: Workflow\nmetadata:\n", ResourceKind.WORKFLOW)

    def test_cron_workflow_empty_spec(self) -> None:
        """Test that a cron workflow with an empty spec still gets labelled workflow metadata."""
        body = load_manifest("kind: CronWorkflow\nmetadata:\n  name: cron\nspec:\n", ResourceKind.CRON_WORKFLOW)

        assert body["spec"] == {"workflowMetadata": {"labels": {MANAGED_LABEL_KEY: "true"}}}
        assert body["metadata"]["labels"] == {MANAGED_LABEL_KEY: "true"}

    @pytest.mark.parametrize("text", ["kind: [unclosed", "- just\n- a list\n"])
    def test_invalid_yaml(self, text) -> None:
        """Test that malformed or non-mapping YAML is rejected."""
        with pytest.raises(PreconditionError):
            load_manifest(text, ResourceKind.WORKFLOW)

    def test_missing_file(self, tmp_path) -> None:
        """Test that an unreadable @path is rejected."""
        with pytest.raises(PreconditionError, match="Cannot read manifest"):
            load_manifest(f"@{tmp_path / 'nope.yaml'}", ResourceKind.WORKFLOW)


class TestBuiltManifests:
    """Tests for manifests the harness builds itself."""

    def test_config_map(self) -> None:
        """Test the config map manifest."""
        body = config_map_manifest("my-config", {"k": "v"})

        assert body["apiVersion"] == "v1"
        assert body["data"] == {"k": "v"}
        assert body["metadata"] == {"name": "my-config", "labels": {MANAGED_LABEL_KEY: "true"}}

    def test_storage_quota(self) -> None:
        """Test the storage quota manifest."""
        body = storage_quota_manifest("storage-quota", "5Mi")

        assert body["kind"] == "ResourceQuota"
        assert body["spec"] == {"hard": {"requests.storage": "5Mi"}}
