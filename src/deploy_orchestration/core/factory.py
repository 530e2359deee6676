"""
Wires an Orchestrator for one invocation.

Reads the project, fills profile and region from the previous deployment
record when not given, detects system capabilities and builds every pipeline
stage from the settings.
"""

import logging
from typing import Optional

from deploy_orchestration.cdk import CdkProjectHandler, CommandLineWrapper, SubprocessCommandLineWrapper
from deploy_orchestration.config import DeploySettings, ToolOptions
from deploy_orchestration.logging_setup import CDK_OUTPUT_LOGGER
from deploy_orchestration.option_settings import OptionSettingsResolver
from deploy_orchestration.persistence import PreviousDeploymentSettings
from deploy_orchestration.project import ProjectDefinitionParser, SystemCapabilityEvaluator
from deploy_orchestration.prompts import Prompter
from deploy_orchestration.recipes import RecipeLoader, find_recipe_definitions_path
from deploy_orchestration.recommendations import RecommendationEngine
from deploy_orchestration.save_location import SaveDirectoryGovernor
from deploy_orchestration.session import CredentialContext, OrchestratorSession
from deploy_orchestration.type_hints import (
    AwsCliResourceQueryer,
    ResourceQueryer,
    RetryingResourceQueryer,
    create_default_registry,
)
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)


def create_recipe_loader(settings: DeploySettings) -> RecipeLoader:
    """Bundled recipe definitions first, then the configured extra paths."""
    return RecipeLoader([find_recipe_definitions_path(), *settings.recipe_paths])


def create_orchestrator(options: ToolOptions, prompter: Prompter,
                        command_line: Optional[CommandLineWrapper] = None,
                        resource_queryer: Optional[ResourceQueryer] = None) -> Orchestrator:
    """
    Build the orchestrator for ``options.project_path``.

    Args:
        options: Per-invocation options
        prompter: Answers the pipeline's questions
        command_line: Runner for external tools (defaults to subprocesses)
        resource_queryer: Lists AWS resources for type hints (defaults to the AWS CLI)
    """
    settings = options.settings
    project_definition = ProjectDefinitionParser().parse(options.project_path)

    previous = PreviousDeploymentSettings.read(project_definition.project_directory)
    profile = options.profile or previous.profile
    region = options.region or previous.region
    credentials = CredentialContext(profile=profile)

    if command_line is None:
        command_line = SubprocessCommandLineWrapper(
            output_logger=logging.getLogger(CDK_OUTPUT_LOGGER),
            credentials=credentials,
            region=region,
            timeout=settings.command_timeout,
        )

    session = OrchestratorSession(
        project_definition=project_definition,
        account_id=options.account_id or settings.account_id,
        region=region,
        profile=profile,
        system_capabilities=SystemCapabilityEvaluator(command_line).evaluate(),
        credentials=credentials,
    )
    logger.debug("Session for %s (profile=%s, region=%s)", project_definition.assembly_name, profile, region)

    queryer = RetryingResourceQueryer(
        resource_queryer or AwsCliResourceQueryer(command_line),
        retries=settings.resource_query_retries,
        delay=settings.resource_query_retry_delay,
    )

    return Orchestrator(
        session=session,
        recipe_loader=create_recipe_loader(settings),
        recommendation_engine=RecommendationEngine(max_workers=settings.max_rule_workers),
        resolver=OptionSettingsResolver(create_default_registry(queryer, prompter)),
        governor=SaveDirectoryGovernor(command_line, prompter),
        cdk_handler=CdkProjectHandler(command_line, settings),
        prompter=prompter,
    )
