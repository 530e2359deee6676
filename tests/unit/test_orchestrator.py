"""
Orchestrator Unit Tests

End to end runs of the pipeline against a recipe directory on disk, a fake
command line and a scripted prompter.
"""

import json
from dataclasses import replace

import pytest

from deploy_orchestration.cdk import CdkProjectHandler
from deploy_orchestration.core import Orchestrator, parse_overrides
from deploy_orchestration.exceptions import (
    InvalidSaveDirectoryForCdkProject,
    InvalidStackName,
    MissingCredentials,
    SettingValidationFailed,
    UnsupportedRecipe,
)
from deploy_orchestration.option_settings import OptionSettingsResolver
from deploy_orchestration.persistence import PreviousDeploymentSettings
from deploy_orchestration.recipes import RecipeLoader
from deploy_orchestration.recommendations import RecommendationEngine
from deploy_orchestration.save_location import SaveDirectoryGovernor

from conftest import FakeCommandLineWrapper, FakePrompter, cluster_recipe_data, write_recipe


def make_orchestrator(session, recipe_dir, deploy_settings, command_line=None, prompter=None):
    command_line = command_line or FakeCommandLineWrapper()
    prompter = prompter or FakePrompter()
    return Orchestrator(
        session=session,
        recipe_loader=RecipeLoader([recipe_dir]),
        recommendation_engine=RecommendationEngine(max_workers=2),
        resolver=OptionSettingsResolver(),
        governor=SaveDirectoryGovernor(command_line, prompter),
        cdk_handler=CdkProjectHandler(command_line, deploy_settings),
        prompter=prompter,
    )


class TestRecommendations:
    """Recommendation generation and recipe selection."""

    def test_ranked_recommendations(self, session, recipe_dir, deploy_settings):
        write_recipe(recipe_dir / "low", cluster_recipe_data(id="LowPriority", name="Low", priority=1))
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        ids = [r.recipe.id for r in orchestrator.generate_recommendations()]
        assert ids == ["WebAppOnEcs", "LowPriority"]

    def test_unsupported_recipe(self, session, recipe_dir, deploy_settings):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        recommendations = orchestrator.generate_recommendations()
        with pytest.raises(UnsupportedRecipe, match="WebAppOnEcs"):
            orchestrator.select_recommendation(recommendations, "Lambda")

    def test_prompter_picks_without_recipe_id(self, session, recipe_dir, deploy_settings):
        write_recipe(recipe_dir / "low", cluster_recipe_data(id="LowPriority", name="Low", priority=1))
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings,
                                         prompter=FakePrompter(recommendation_index=1))
        recommendations = orchestrator.generate_recommendations()
        assert orchestrator.select_recommendation(recommendations).recipe.id == "LowPriority"


class TestGenerateDeploymentProject:
    """Saving a CDK project for customization."""

    def test_default_location(self, session, recipe_dir, deploy_settings, tmp_path, save_directories):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        path = orchestrator.generate_deployment_project()
        save_directories.append(path)

        assert path == tmp_path / "code" / "AppDeploymentProject"
        assert (path / "AppDeploymentProject.csproj").is_file()
        assert len(list(path.glob("WebAppOnEcs-*.recipe"))) == 1

    def test_overrides_parsed(self, session, recipe_dir, deploy_settings, tmp_path):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        path = orchestrator.generate_deployment_project(save_path=tmp_path / "Custom",
                                                        overrides={"DesiredCount": "4"})
        settings = json.loads((path / "appsettings.json").read_text())["Settings"]
        assert settings["DesiredCount"] == 4

    def test_nested_output_rejected(self, session, recipe_dir, deploy_settings, project_file):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        target = project_file.parent / "cdk"

        with pytest.raises(InvalidSaveDirectoryForCdkProject):
            orchestrator.generate_deployment_project(save_path=target)
        assert not target.exists()

    def test_declined_outside_source_control(self, session, recipe_dir, deploy_settings, tmp_path):
        command_line = FakeCommandLineWrapper({"git": 128, "svn": 1})
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings, command_line=command_line,
                                         prompter=FakePrompter(yes_no=False))

        assert orchestrator.generate_deployment_project(save_path=tmp_path / "Custom") is None
        assert not (tmp_path / "Custom").exists()

    def test_invalid_setting_leaves_no_directory(self, session, recipe_dir, deploy_settings, tmp_path):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        with pytest.raises(SettingValidationFailed):
            orchestrator.generate_deployment_project(save_path=tmp_path / "Custom",
                                                     overrides={"UseDefaultVpc": "false"})
        assert not (tmp_path / "Custom").exists()


class TestDeploy:
    """Deployment, its failures and the persisted record."""

    def test_success_records_settings(self, session, recipe_dir, deploy_settings, project_file):
        command_line = FakeCommandLineWrapper()
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings, command_line=command_line)

        assert orchestrator.deploy(stack_name="MyStack", overrides={"DesiredCount": "5"}) == 0

        previous = PreviousDeploymentSettings.read(project_file.parent)
        assert previous.profile == "default"
        assert previous.region == "us-west-2"
        assert previous.settings_for("MyStack", "WebAppOnEcs")["DesiredCount"] == 5
        assert [c.split()[2] for c in command_line.commands()] == ["bootstrap", "deploy"]

    def test_redeploy_reuses_recipe_and_settings(self, session, recipe_dir, deploy_settings, project_file):
        write_recipe(recipe_dir / "low", cluster_recipe_data(id="LowPriority", name="Low", priority=1))
        previous = PreviousDeploymentSettings()
        previous.record_deployment("MyStack", "LowPriority", {"DesiredCount": 9})
        previous.write(project_file.parent)

        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        assert orchestrator.deploy(stack_name="MyStack") == 0

        record = PreviousDeploymentSettings.read(project_file.parent).find("MyStack")
        assert record.recipe_id == "LowPriority"
        assert record.settings["DesiredCount"] == 9

    def test_failing_step_returns_exit_code(self, session, recipe_dir, deploy_settings, project_file):
        command_line = FakeCommandLineWrapper({"npx cdk deploy": 2})
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings, command_line=command_line)

        assert orchestrator.deploy(stack_name="MyStack") == 2
        assert PreviousDeploymentSettings.read(project_file.parent).deployments == []

    def test_stack_name_defaults_to_project(self, session, recipe_dir, deploy_settings, project_file):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        orchestrator.deploy()
        assert [a.name for a in orchestrator.list_deployments()] == ["App"]

    def test_invalid_stack_name(self, session, recipe_dir, deploy_settings):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        with pytest.raises(InvalidStackName):
            orchestrator.deploy(stack_name="1-not_valid")

    def test_missing_account(self, session, recipe_dir, deploy_settings):
        orchestrator = make_orchestrator(replace(session, account_id=None), recipe_dir, deploy_settings)
        with pytest.raises(MissingCredentials):
            orchestrator.deploy(stack_name="MyStack")

    def test_save_cdk_project(self, session, recipe_dir, deploy_settings, tmp_path, save_directories):
        orchestrator = make_orchestrator(session, recipe_dir, deploy_settings)
        assert orchestrator.deploy(stack_name="MyStack", save_cdk_project=True) == 0
        saved = tmp_path / "code" / "AppDeploymentProject"
        save_directories.append(saved)
        assert (saved / "appsettings.json").is_file()


class TestParseOverrides:
    """Text from the command line converted to declared types."""

    def test_types(self, cluster_recipe):
        parsed = parse_overrides(cluster_recipe, {"DesiredCount": "2", "UseDefaultVpc": "no",
                                                  "ClusterName": "42", "Unknown": "x"})
        assert parsed == {"DesiredCount": 2, "UseDefaultVpc": False, "ClusterName": "42", "Unknown": "x"}

    def test_bad_number(self, cluster_recipe):
        with pytest.raises(SettingValidationFailed, match="not a valid Int"):
            parse_overrides(cluster_recipe, {"DesiredCount": "many"})
