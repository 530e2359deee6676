"""
Session-level records shared by every stage of the pipeline.

OrchestratorSession is created once per invocation and never mutated; the
recommendation engine shares it by reference across worker threads.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from deploy_orchestration.project.definition import ProjectDefinition
from deploy_orchestration.project.capabilities import SystemCapabilities


@dataclass(frozen=True)
class CredentialContext:
    """Opaque handle to resolved AWS credentials.

    Resolving credentials is done outside this tool; the handle only knows how
    to expose them to child processes.
    """
    profile: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)

    def to_environment(self, region: Optional[str] = None) -> Dict[str, str]:
        env = dict(self.environment)
        if self.profile:
            env["AWS_PROFILE"] = self.profile
        if region:
            env["AWS_REGION"] = region
            env["AWS_DEFAULT_REGION"] = region
        return env


@dataclass(frozen=True)
class OrchestratorSession:
    """Cross-cutting context of one invocation."""
    project_definition: ProjectDefinition
    account_id: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None
    system_capabilities: SystemCapabilities = field(default_factory=SystemCapabilities)
    credentials: Optional[CredentialContext] = None


@dataclass(frozen=True)
class CloudApplication:
    """Logical identity of a deployed application."""
    name: str
    recipe_id: Optional[str] = None
