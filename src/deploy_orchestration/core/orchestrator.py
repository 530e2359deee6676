"""
Deployment orchestrator.

Runs the pipeline for one project: recommendations, recipe selection, option
setting resolution, save-location governance and the CDK hand-off. Settings
used for a successful deployment are persisted next to the project so the
next deployment of the same stack starts from them.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from deploy_orchestration.cdk import CdkProjectHandler
from deploy_orchestration.exceptions import (
    DeploymentCommandFailed,
    InvalidStackName,
    MissingCredentials,
    UnsupportedRecipe,
)
from deploy_orchestration.option_settings import OptionSettingsResolver
from deploy_orchestration.persistence import PreviousDeploymentSettings
from deploy_orchestration.prompts import Prompter
from deploy_orchestration.recipes import OptionSettingType, Recipe, RecipeLoader
from deploy_orchestration.recommendations import Recommendation, RecommendationEngine
from deploy_orchestration.save_location import SaveDirectoryGovernor
from deploy_orchestration.session import CloudApplication, OrchestratorSession

logger = logging.getLogger(__name__)

# CloudFormation stack name rules
STACK_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{0,127}$")


class Orchestrator:
    """Drives recommendation, resolution, generation and deployment for one session."""

    def __init__(self, session: OrchestratorSession, recipe_loader: RecipeLoader,
                 recommendation_engine: RecommendationEngine, resolver: OptionSettingsResolver,
                 governor: SaveDirectoryGovernor, cdk_handler: CdkProjectHandler, prompter: Prompter):
        self.session = session
        self.recipe_loader = recipe_loader
        self.recommendation_engine = recommendation_engine
        self.resolver = resolver
        self.governor = governor
        self.cdk_handler = cdk_handler
        self.prompter = prompter

    @property
    def project_directory(self) -> Path:
        return self.session.project_definition.project_directory

    # ===== Recommendations =====

    def generate_recommendations(self) -> List[Recommendation]:
        """
        Recommendations for the session's project, best first.

        Raises:
            RecipeLoaderError: If the catalog cannot be loaded
            FailedToGenerateAnyRecommendations: If no recipe applies
        """
        catalog = self.recipe_loader.load_all()
        return self.recommendation_engine.generate_recommendations(
            self.session.project_definition, self.session.system_capabilities, catalog
        )

    def select_recommendation(self, recommendations: List[Recommendation],
                              recipe_id: Optional[str] = None) -> Recommendation:
        """Pick the recommendation for ``recipe_id``, or ask the prompter."""
        if recipe_id is None:
            return self.prompter.ask_to_choose_recommendation(recommendations)
        for recommendation in recommendations:
            if recommendation.recipe.id == recipe_id:
                return recommendation
        available = ", ".join(r.recipe.id for r in recommendations)
        raise UnsupportedRecipe(
            f"The recipe '{recipe_id}' is not compatible with this project. Compatible recipes: {available}"
        )

    # ===== Deployment project generation =====

    def generate_deployment_project(self, save_path: Optional[Union[str, Path]] = None,
                                    recipe_id: Optional[str] = None,
                                    overrides: Optional[Mapping[str, Any]] = None) -> Optional[Path]:
        """
        Generate a CDK deployment project the user keeps and customizes.

        Returns:
            The project directory, or None if the user declined to save into
            a directory that is not under source control

        Raises:
            InvalidSaveDirectoryForCdkProject: If the save directory is rejected
        """
        recommendations = self.generate_recommendations()
        recommendation = self.select_recommendation(recommendations, recipe_id)
        self.resolver.resolve_settings(
            recommendation, self.session,
            overrides=parse_overrides(recommendation.recipe, overrides),
        )

        save_directory = self.governor.prepare_save_directory(save_path, self.session.project_definition)
        if not self.governor.confirm_source_control(save_directory):
            return None

        try:
            project_directory = self.cdk_handler.create_cdk_project_for_deployment(
                recommendation, self.session, save_directory.path
            )
        except Exception:
            self.governor.rollback(save_directory)
            raise

        logger.info("The CDK deployment project is saved at: %s", project_directory)
        return project_directory

    # ===== Deployment =====

    def deploy(self, stack_name: Optional[str] = None, recipe_id: Optional[str] = None,
               overrides: Optional[Mapping[str, Any]] = None, save_cdk_project: bool = False) -> int:
        """
        Deploy the project.

        Returns:
            0 on success, otherwise the exit code of the failing CDK step
        """
        if not self.session.account_id or not self.session.region:
            raise MissingCredentials("An AWS account id and region are required to deploy.")

        stack_name = stack_name or self.session.project_definition.assembly_name
        if not STACK_NAME_PATTERN.match(stack_name):
            raise InvalidStackName(
                f"Invalid stack name '{stack_name}'. A stack name can contain only alphanumeric characters "
                "(case-sensitive) and hyphens. It must start with an alphabetic character and can't be "
                "longer than 128 characters."
            )

        previous = PreviousDeploymentSettings.read(self.project_directory)
        record = previous.find(stack_name)
        if recipe_id is None and record is not None:
            logger.info("Redeploying %s with recipe %s", stack_name, record.recipe_id)
            recipe_id = record.recipe_id

        recommendations = self.generate_recommendations()
        recommendation = self.select_recommendation(recommendations, recipe_id)
        recipe = recommendation.recipe

        settings = self.resolver.resolve_settings(
            recommendation, self.session,
            prior_settings=previous.settings_for(stack_name, recipe.id),
            overrides=parse_overrides(recipe, overrides),
            stack_name=stack_name,
        )
        cloud_application = CloudApplication(name=stack_name, recipe_id=recipe.id)

        save_directory = None
        if save_cdk_project:
            save_directory = self.governor.prepare_save_directory(None, self.session.project_definition)

        try:
            self.cdk_handler.create_cdk_deployment(
                self.session, cloud_application, recommendation,
                save_directory.path if save_directory else None,
            )
        except DeploymentCommandFailed as e:
            logger.error(e.message)
            return e.exit_code
        except Exception:
            if save_directory is not None:
                self.governor.rollback(save_directory)
            raise

        previous.record_deployment(stack_name, recipe.id, settings,
                                   profile=self.session.profile, region=self.session.region)
        previous.write(self.project_directory)
        logger.info("Deployment of %s succeeded", stack_name)
        return 0

    def list_deployments(self) -> List[CloudApplication]:
        """Applications previously deployed from this project."""
        previous = PreviousDeploymentSettings.read(self.project_directory)
        return [CloudApplication(name=r.stack_name, recipe_id=r.recipe_id) for r in previous.deployments]


def parse_overrides(recipe: Recipe, overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Convert textual override values to the declared setting types.

    Unknown setting ids are passed through for the resolver to reject.
    """
    parsed: Dict[str, Any] = {}
    for setting_id, value in (overrides or {}).items():
        setting = recipe.get_option_setting(setting_id)
        if setting is not None and isinstance(value, str) and setting.type != OptionSettingType.STRING:
            value = setting.parse_input(value)
        parsed[setting_id] = value
    return parsed
