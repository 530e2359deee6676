"""Pipeline orchestration: the Orchestrator, its wiring and server-mode sessions."""

from .orchestrator import Orchestrator, parse_overrides
from .deployment_manager import DeploymentSession, DeploymentSessionManager, DeploymentStatus
from .factory import create_orchestrator, create_recipe_loader


__all__ = [
    "Orchestrator",
    "DeploymentSession",
    "DeploymentSessionManager",
    "DeploymentStatus",
    "create_orchestrator",
    "create_recipe_loader",
    "parse_overrides",
]
