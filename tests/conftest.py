"""
Pytest configuration and shared fixtures for deploy_orchestration tests.

This file is automatically loaded by pytest and provides fakes for the
external collaborators (command line, prompts, AWS resource listing) plus
fixtures building a small .NET project on disk.
"""

import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest
import yaml

# Add src to path so tests can import modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from deploy_orchestration.cdk.command_line import CommandLineWrapper, CommandResult
from deploy_orchestration.config import DeploySettings
from deploy_orchestration.project import ProjectDefinitionParser, SystemCapabilities
from deploy_orchestration.prompts import Prompter, UserResponse
from deploy_orchestration.recipes import create_recipe
from deploy_orchestration.recommendations import Recommendation
from deploy_orchestration.session import CredentialContext, OrchestratorSession


WEB_PROJECT = """<Project Sdk="Microsoft.NET.Sdk.Web">
  <PropertyGroup>
    <TargetFramework>net6.0</TargetFramework>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="AWSSDK.S3" Version="3.7.0" />
  </ItemGroup>
</Project>
"""

CONSOLE_PROJECT = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <TargetFramework>net6.0</TargetFramework>
    <AssemblyName>Worker</AssemblyName>
  </PropertyGroup>
</Project>
"""

TEMPLATE_FILES = {
    "__ProjectName__.csproj.j2": '<Project Sdk="Microsoft.NET.Sdk">\n'
                                 "  <AssemblyName>{{ assembly_name }}</AssemblyName>\n</Project>\n",
    "AppStack.cs.j2": "// {{ recipe.id }} {{ recipe.version }}\n"
                      "class AppStack { string Cluster = \"{{ settings.get('ClusterName') }}\"; }\n",
    "Program.cs.j2": "// {{ account_id }} {{ region }}\nclass Program {}\n",
    "cdk.json.j2": '{"app": "dotnet run --project {{ assembly_name }}.csproj"}\n',
    ".gitignore": "cdk.out/\n",
}


class FakeCommandLineWrapper(CommandLineWrapper):
    """Records commands; results are looked up by the command's leading words."""

    def __init__(self, results: Optional[Dict[str, int]] = None, default_exit_code: int = 0):
        self.results = results or {}
        self.default_exit_code = default_exit_code
        self.calls: List[dict] = []

    def run(self, command: Sequence[str], working_directory=None, environment=None,
            need_credentials=False, stream_output=True) -> CommandResult:
        self.calls.append({
            "command": list(command),
            "working_directory": working_directory,
            "environment": dict(environment or {}),
            "need_credentials": need_credentials,
        })
        joined = " ".join(command)
        exit_code = self.default_exit_code
        for prefix, code in self.results.items():
            if joined.startswith(prefix):
                exit_code = code
        return CommandResult(exit_code=exit_code, stdout="")

    def commands(self) -> List[str]:
        return [" ".join(c["command"]) for c in self.calls]


class FakePrompter(Prompter):
    """Scripted answers; records the questions asked."""

    def __init__(self, recommendation_index: int = 0, choose_or_create=None, yes_no: bool = True):
        self.recommendation_index = recommendation_index
        self.choose_or_create = choose_or_create
        self.yes_no = yes_no
        self.questions: List[str] = []
        self.choose_calls: List[dict] = []

    def ask_to_choose_recommendation(self, recommendations):
        return recommendations[self.recommendation_index]

    def ask_user_to_choose_or_create_new(self, options, title, config):
        self.choose_calls.append({"options": list(options), "title": title, "config": config})
        if callable(self.choose_or_create):
            return self.choose_or_create(options, config)
        if self.choose_or_create is not None:
            return self.choose_or_create
        for option in options:
            if config.default_selector(option):
                return UserResponse(selected_option=option)
        return UserResponse(create_new=True, new_name=config.default_new_name)

    def ask_yes_no(self, question, default=True):
        self.questions.append(question)
        return self.yes_no


def write_project(directory: Path, content: str = WEB_PROJECT, name: str = "App",
                  dockerfile: bool = True) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    project_file = directory / f"{name}.csproj"
    project_file.write_text(content, encoding="utf-8")
    if dockerfile:
        (directory / "Dockerfile").write_text("FROM mcr.microsoft.com/dotnet/aspnet:6.0\n", encoding="utf-8")
    return project_file


def write_template(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in TEMPLATE_FILES.items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


def write_recipe(directory: Path, data: dict, template: Optional[str] = "template") -> Path:
    """Write ``data`` as ``<id>.recipe`` with a template directory beside it."""
    directory.mkdir(parents=True, exist_ok=True)
    if template:
        data = {"cdk_project_template": template, **data}
        write_template(directory / template)
    path = directory / f"{data['id']}.recipe"
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def cluster_recipe_data(**overrides) -> dict:
    data = {
        "id": "WebAppOnEcs",
        "name": "Web App on ECS",
        "version": "1.0.0",
        "priority": 100,
        "rules": [{"type": "field-equals", "field": "sdk_type", "values": ["Microsoft.NET.Sdk.Web"]}],
        "option_settings": [
            {"id": "ClusterName", "type": "String", "type_hint": "ECSCluster",
             "default_value": "{ProjectName}", "validators": [{"type": "required"}]},
            {"id": "DesiredCount", "type": "Int", "default_value": 3,
             "validators": [{"type": "range", "min": 1, "max": 10}]},
            {"id": "UseDefaultVpc", "type": "Bool", "default_value": True},
            {"id": "VpcId", "type": "String", "default_value": "",
             "depends_on": [{"id": "UseDefaultVpc", "value": False}],
             "validators": [{"type": "required"}]},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def project_file(tmp_path):
    """``<tmp>/code/App/App.csproj``: an ASP.NET Core project with a Dockerfile."""
    return write_project(tmp_path / "code" / "App")


@pytest.fixture
def project_definition(project_file):
    return ProjectDefinitionParser().parse(project_file)


@pytest.fixture
def session(project_definition):
    return OrchestratorSession(
        project_definition=project_definition,
        account_id="123456789012",
        region="us-west-2",
        profile="default",
        system_capabilities=SystemCapabilities(node_js_installed=True, docker_installed=True,
                                               docker_container_type="linux"),
        credentials=CredentialContext(profile="default"),
    )


@pytest.fixture
def recipe_dir(tmp_path):
    """Recipe search path holding the cluster recipe and its template."""
    directory = tmp_path / "recipes"
    write_recipe(directory, cluster_recipe_data())
    return directory


@pytest.fixture
def cluster_recipe(recipe_dir):
    path = recipe_dir / "WebAppOnEcs.recipe"
    return create_recipe(yaml.safe_load(path.read_text(encoding="utf-8")), recipe_path=path)


@pytest.fixture
def recommendation(cluster_recipe, project_definition):
    return Recommendation(recipe=cluster_recipe, project_definition=project_definition,
                          computed_priority=cluster_recipe.priority)


@pytest.fixture
def command_line():
    return FakeCommandLineWrapper()


@pytest.fixture
def prompter():
    return FakePrompter()


@pytest.fixture
def deploy_settings(tmp_path):
    return DeploySettings(cdk_projects_dir=tmp_path / "cdk-projects", recipe_paths=[])


@pytest.fixture
def save_directories():
    """Collects save directories a test creates; all are removed on exit, pass or fail."""
    created: List[Path] = []
    yield created
    for path in created:
        shutil.rmtree(path, ignore_errors=True)
