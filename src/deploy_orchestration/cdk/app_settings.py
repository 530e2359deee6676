"""Serializes resolved settings for the generated CDK app."""

import json

from deploy_orchestration.recommendations import Recommendation
from deploy_orchestration.session import CloudApplication, OrchestratorSession


class CdkAppSettingsSerializer:
    """Builds the ``appsettings.json`` body read by the CDK app at synth time."""

    def build(self, cloud_application: CloudApplication, recommendation: Recommendation,
              session: OrchestratorSession) -> str:
        recipe = recommendation.recipe
        payload = {
            "AWSAccountId": session.account_id,
            "AWSRegion": session.region,
            "StackName": cloud_application.name,
            "RecipeId": recipe.id,
            "RecipeVersion": recipe.version,
            "Settings": dict(recommendation.option_setting_values),
        }
        return json.dumps(payload, indent=2)
