"""
Per-project record of previous deployments.

Stored as ``aws-deployments.json`` next to the application's project file. It
seeds profile, region and option setting values for the next deployment of
the same stack with the same recipe.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from deploy_orchestration.file_utils import atomic_write_text

logger = logging.getLogger(__name__)

DEPLOYMENT_SETTINGS_FILE_NAME = "aws-deployments.json"


class DeploymentRecord(BaseModel):
    """Settings a stack was last deployed with."""
    model_config = {"populate_by_name": True}

    stack_name: str = Field(..., alias="StackName")
    recipe_id: str = Field(..., alias="RecipeId")
    settings: Dict[str, Any] = Field(default_factory=dict, alias="Settings")


class PreviousDeploymentSettings(BaseModel):
    """Contents of the deployment settings file."""
    model_config = {"populate_by_name": True}

    profile: Optional[str] = Field(default=None, alias="Profile")
    region: Optional[str] = Field(default=None, alias="Region")
    deployments: List[DeploymentRecord] = Field(default_factory=list, alias="Deployments")

    @staticmethod
    def get_file_path(project_directory: Union[str, Path]) -> Path:
        return Path(project_directory) / DEPLOYMENT_SETTINGS_FILE_NAME

    @classmethod
    def read(cls, project_directory: Union[str, Path]) -> "PreviousDeploymentSettings":
        """Load the record; a missing or unreadable file yields an empty record."""
        path = cls.get_file_path(project_directory)
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return cls.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable deployment settings %s: %s", path, e)
            return cls()

    def write(self, project_directory: Union[str, Path]) -> Path:
        """Publish the record with write-then-rename."""
        body = json.dumps(self.model_dump(by_alias=True, mode="json"), indent=2)
        path = atomic_write_text(self.get_file_path(project_directory), body)
        logger.debug("Saved deployment settings to %s", path)
        return path

    def find(self, stack_name: str) -> Optional[DeploymentRecord]:
        for record in self.deployments:
            if record.stack_name == stack_name:
                return record
        return None

    def settings_for(self, stack_name: str, recipe_id: str) -> Dict[str, Any]:
        """Previous values for the stack, only if it was deployed with the same recipe."""
        record = self.find(stack_name)
        if record is None or record.recipe_id != recipe_id:
            return {}
        return dict(record.settings)

    def record_deployment(self, stack_name: str, recipe_id: str, settings: Dict[str, Any],
                          profile: Optional[str] = None, region: Optional[str] = None) -> None:
        """Replace (or add) the entry for ``stack_name``."""
        self.deployments = [r for r in self.deployments if r.stack_name != stack_name]
        self.deployments.append(DeploymentRecord(stack_name=stack_name, recipe_id=recipe_id,
                                                 settings=dict(settings)))
        if profile:
            self.profile = profile
        if region:
            self.region = region
