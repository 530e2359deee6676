"""
CDK project materialization and hand-off to the CDK command line tool.

A generated project consists of the rendered recipe template, the serialized
settings (``appsettings.json``) and a snapshot of the recipe definition. The
snapshot is written last so a project holding one was generated completely.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import List, Optional, Union

import yaml

from deploy_orchestration.config import DeploySettings
from deploy_orchestration.exceptions import DeploymentCommandFailed, RecipeLoaderError, RecommendationNotReady
from deploy_orchestration.file_utils import atomic_write_text
from deploy_orchestration.logging_setup import CDK_OUTPUT_LOGGER
from deploy_orchestration.recommendations import Recommendation
from deploy_orchestration.session import CloudApplication, OrchestratorSession
from .app_settings import CdkAppSettingsSerializer
from .command_line import CommandLineWrapper
from .constants import (
    APP_SETTINGS_FILE_NAME,
    AWS_EXECUTION_ENV,
    RECIPE_SNAPSHOT_EXTENSION,
    SETTINGS_PATH_CDK_CONTEXT_PARAMETER,
)
from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)


class CdkProjectHandler:
    """Materializes CDK projects and runs ``cdk bootstrap`` / ``cdk deploy``."""

    def __init__(self, command_line: CommandLineWrapper, settings: DeploySettings,
                 output_logger: Optional[logging.Logger] = None):
        self.command_line = command_line
        self.settings = settings
        self.output_logger = output_logger or logging.getLogger(CDK_OUTPUT_LOGGER)
        self.app_settings_serializer = CdkAppSettingsSerializer()

    def create_cdk_project_for_deployment(self, recommendation: Recommendation, session: OrchestratorSession,
                                          save_directory: Optional[Union[str, Path]] = None,
                                          cloud_application: Optional[CloudApplication] = None) -> Path:
        """
        Generate the CDK project for a recommendation.

        Args:
            recommendation: Recommendation with every visible setting resolved
            session: Current session
            save_directory: Where to generate the project. Its name becomes the
                assembly name. Without it, a fresh directory under the
                configured CDK projects directory is used with the
                application's assembly name.
            cloud_application: Stack the settings are serialized for (defaults
                to a stack named after the assembly)

        Returns:
            The project directory

        Raises:
            RecommendationNotReady: If a setting is unresolved or failed
        """
        if not recommendation.is_ready():
            blocking = ", ".join(f"{k} ({v.value})" for k, v in recommendation.blocking_settings().items())
            raise RecommendationNotReady(
                f"Cannot generate a CDK project for {recommendation.recipe.id}, "
                f"option settings are not resolved: {blocking}"
            )

        if save_directory:
            project_directory = Path(save_directory)
            assembly_name = project_directory.resolve().name
        else:
            project_directory = Path(self.settings.cdk_projects_dir).expanduser() / uuid.uuid4().hex[:12]
            assembly_name = recommendation.project_definition.assembly_name
        if not assembly_name:
            raise ValueError("The assembly name for the CDK deployment project cannot be empty")

        template_directory = recommendation.recipe.template_directory
        if template_directory is None:
            raise RecipeLoaderError(f"Recipe {recommendation.recipe.id} does not declare a CDK project template")

        cloud_application = cloud_application or CloudApplication(name=assembly_name,
                                                                  recipe_id=recommendation.recipe.id)
        # Save directories belong to the governor, only scratch directories are removed here
        remove_directory_on_failure = save_directory is None and not project_directory.exists()
        project_directory.mkdir(parents=True, exist_ok=True)

        self.output_logger.info("Generating a %s CDK Project", recommendation.recipe.name)

        written: List[Path] = []
        try:
            engine = TemplateEngine(template_directory)
            engine.generate(recommendation, session, project_directory, assembly_name, written)

            body = self.app_settings_serializer.build(cloud_application, recommendation, session)
            written.append(atomic_write_text(project_directory / APP_SETTINGS_FILE_NAME, body))
        except Exception:
            logger.error("Generating the CDK project in %s failed, removing generated files", project_directory)
            self._remove_generated(project_directory, written)
            if remove_directory_on_failure and not any(project_directory.iterdir()):
                project_directory.rmdir()
            raise

        self._snapshot_recipe(recommendation, project_directory)
        return project_directory

    def create_cdk_deployment(self, session: OrchestratorSession, cloud_application: CloudApplication,
                              recommendation: Recommendation,
                              save_directory: Optional[Union[str, Path]] = None) -> Path:
        """
        Generate the CDK project and hand it to the CDK command line tool.

        Returns:
            The project directory that was deployed

        Raises:
            DeploymentCommandFailed: If ``cdk bootstrap`` or ``cdk deploy`` fails;
                ``deploy`` is not run when bootstrapping failed
        """
        recipe = recommendation.recipe
        project_directory = self.create_cdk_project_for_deployment(
            recommendation, session, save_directory, cloud_application
        )
        app_settings_path = project_directory / APP_SETTINGS_FILE_NAME

        self.output_logger.info("Starting deployment of CDK Project")
        cdk = list(self.settings.cdk_command)

        bootstrap = self.command_line.run(
            cdk + ["bootstrap", f"aws://{session.account_id}/{session.region}"],
            need_credentials=True,
        )
        if not bootstrap.success:
            raise DeploymentCommandFailed("bootstrap", bootstrap.exit_code, recipe.id)

        deploy = self.command_line.run(
            cdk + ["deploy", "--require-approval", "never",
                   "-c", f"{SETTINGS_PATH_CDK_CONTEXT_PARAMETER}={app_settings_path}"],
            working_directory=project_directory,
            environment={AWS_EXECUTION_ENV: f"{recipe.id}_{recipe.version}"},
            need_credentials=True,
        )
        if not deploy.success:
            raise DeploymentCommandFailed("deploy", deploy.exit_code, recipe.id)

        logger.info("Deployment of %s with %s finished", cloud_application.name, recipe.id)
        return project_directory

    def _snapshot_recipe(self, recommendation: Recommendation, project_directory: Path) -> Path:
        recipe = recommendation.recipe
        destination = project_directory / f"{recipe.id}-{uuid.uuid4()}{RECIPE_SNAPSHOT_EXTENSION}"
        if recipe.recipe_path is not None and recipe.recipe_path.is_file():
            shutil.copyfile(recipe.recipe_path, destination)
        else:
            data = recipe.model_dump(mode="json", exclude={"recipe_path"})
            destination.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        logger.debug("Saved recipe snapshot %s", destination.name)
        return destination

    @staticmethod
    def _remove_generated(project_directory: Path, written: List[Path]) -> None:
        for path in reversed(written):
            if path.is_file():
                path.unlink()
        # Deepest first so parents are empty when reached
        subdirectories = sorted((p for p in project_directory.rglob("*") if p.is_dir()),
                                key=lambda p: len(p.parts), reverse=True)
        for directory in subdirectories:
            if not any(directory.iterdir()):
                directory.rmdir()
