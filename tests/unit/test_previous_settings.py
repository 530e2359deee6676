"""
PreviousDeploymentSettings Unit Tests
"""

import json
import logging

from deploy_orchestration.persistence import PreviousDeploymentSettings


class TestPreviousDeploymentSettings:
    """The per-project aws-deployments.json record."""

    def test_missing_file_is_empty(self, tmp_path):
        previous = PreviousDeploymentSettings.read(tmp_path)
        assert previous.deployments == []
        assert previous.profile is None

    def test_written_with_aliases(self, tmp_path):
        previous = PreviousDeploymentSettings()
        previous.record_deployment("MyStack", "WebAppOnEcs", {"DesiredCount": 2}, profile="dev", region="eu-west-1")
        path = previous.write(tmp_path)

        assert path.name == "aws-deployments.json"
        assert json.loads(path.read_text()) == {
            "Profile": "dev",
            "Region": "eu-west-1",
            "Deployments": [{"StackName": "MyStack", "RecipeId": "WebAppOnEcs", "Settings": {"DesiredCount": 2}}],
        }
        assert [p.name for p in tmp_path.iterdir()] == ["aws-deployments.json"]

    def test_record_replaces_stack_entry(self, tmp_path):
        previous = PreviousDeploymentSettings()
        previous.record_deployment("MyStack", "A", {"x": 1})
        previous.record_deployment("Other", "A", {})
        previous.record_deployment("MyStack", "B", {"x": 2})
        previous.write(tmp_path)

        reread = PreviousDeploymentSettings.read(tmp_path)
        assert [r.stack_name for r in reread.deployments] == ["Other", "MyStack"]
        assert reread.find("MyStack").recipe_id == "B"

    def test_settings_only_for_same_recipe(self):
        previous = PreviousDeploymentSettings()
        previous.record_deployment("MyStack", "A", {"x": 1})
        assert previous.settings_for("MyStack", "A") == {"x": 1}
        assert previous.settings_for("MyStack", "B") == {}
        assert previous.settings_for("Unknown", "A") == {}

    def test_corrupt_file_ignored(self, tmp_path, caplog):
        (tmp_path / "aws-deployments.json").write_text("{not json")
        with caplog.at_level(logging.WARNING):
            previous = PreviousDeploymentSettings.read(tmp_path)
        assert previous.deployments == []
        assert "aws-deployments.json" in caplog.text
