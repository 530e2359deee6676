"""
deploy_orchestration: recommends, configures, generates and deploys CDK
projects for .NET applications on AWS.

Pipeline: RecipeLoader -> RecommendationEngine -> OptionSettingsResolver ->
SaveDirectoryGovernor -> CdkProjectHandler. ``Orchestrator`` runs it for one
project; ``deploy_orchestration.cli`` and ``deploy_orchestration.api`` are the
two front ends.
"""

__version__ = "0.1.0"
