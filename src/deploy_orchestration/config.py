"""
Configuration for the deployment tool.

DeploySettings is read from environment variables (prefix ``DEPLOY_TOOL_``)
and an optional ``.env`` file. ToolOptions is the immutable per-invocation
configuration assembled from the parsed command line on top of the settings;
it is built once and passed by reference through the pipeline.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeploySettings(BaseSettings):
    """Deployment tool configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DEPLOY_TOOL_",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    # Extra recipe search paths, searched after the bundled definitions
    recipe_paths: List[Path] = Field(default_factory=list)

    # Where throwaway CDK projects are generated for a plain deploy
    cdk_projects_dir: Path = Path.home() / ".aws-dotnet-deploy" / "Projects"

    # External commands
    command_timeout: Optional[float] = None
    cdk_command: List[str] = Field(default_factory=lambda: ["npx", "cdk"])

    # Resource queries made by type hints
    resource_query_retries: int = Field(default=3, ge=1)
    resource_query_retry_delay: float = Field(default=1.0, ge=0)

    # Recommendation engine
    max_rule_workers: int = Field(default=8, ge=1)

    # Account deployments go to; credentials themselves come from the AWS profile
    account_id: Optional[str] = None

    log_level: str = "INFO"
    server_port: int = 4152


def load_settings(**overrides) -> DeploySettings:
    """Build a fresh settings object; keyword arguments win over the environment."""
    return DeploySettings(**overrides)


@dataclass(frozen=True)
class ToolOptions:
    """Options of a single CLI invocation."""
    settings: DeploySettings
    project_path: Path
    profile: Optional[str] = None
    region: Optional[str] = None
    account_id: Optional[str] = None
    stack_name: Optional[str] = None
    recipe_id: Optional[str] = None
    output: Optional[Path] = None
    save_cdk_project: bool = False
    interactive: bool = True
    diagnostics: bool = False
    setting_overrides: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def overrides_dict(self) -> Dict[str, str]:
        return dict(self.setting_overrides)
