"""
Server-mode session management.

Holds one Orchestrator per API session and runs deployments on background
threads so status can be polled while the CDK tool runs. This class has no
FastAPI dependency; the api package only translates HTTP to these calls.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from deploy_orchestration.exceptions import DeploymentInProgress, is_expected_exception
from deploy_orchestration.recipes import RecipeLoader
from deploy_orchestration.recommendations import Recommendation
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class DeploymentStatus(str, Enum):
    """Progress of a handed-off deployment."""
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class DeploymentSession:
    """State of one API session."""
    session_id: str
    orchestrator: Orchestrator
    recommendations: Optional[List[Recommendation]] = None
    status: DeploymentStatus = DeploymentStatus.PENDING
    exit_code: Optional[int] = None
    message: Optional[str] = None
    thread: Optional[threading.Thread] = field(default=None, repr=False)


OrchestratorFactory = Callable[[Path, Optional[str], Optional[str]], Orchestrator]


class DeploymentSessionManager:
    """Sessions and background deployments for server mode."""

    def __init__(self, orchestrator_factory: OrchestratorFactory, recipe_loader: RecipeLoader):
        """
        Args:
            orchestrator_factory: Builds an orchestrator from (project path, profile, region)
            recipe_loader: Catalog listed by the recipes endpoint
        """
        self.orchestrator_factory = orchestrator_factory
        self.recipe_loader = recipe_loader
        self._sessions: Dict[str, DeploymentSession] = {}
        self._lock = threading.RLock()

    def start_session(self, project_path: Path, profile: Optional[str] = None,
                      region: Optional[str] = None) -> str:
        """Create a session for a project and return its id."""
        orchestrator = self.orchestrator_factory(Path(project_path), profile, region)
        session_id = uuid.uuid4().hex[:12]
        with self._lock:
            self._sessions[session_id] = DeploymentSession(session_id=session_id, orchestrator=orchestrator)
        logger.info("Started session %s for %s", session_id, project_path)
        return session_id

    def get_session(self, session_id: str) -> DeploymentSession:
        """
        Raises:
            KeyError: If the session does not exist
        """
        with self._lock:
            return self._sessions[session_id]

    def get_recommendations(self, session_id: str) -> List[Recommendation]:
        session = self.get_session(session_id)
        with self._lock:
            if session.recommendations is not None:
                return session.recommendations
        # Loading the catalog and evaluating rules runs without holding the lock
        recommendations = session.orchestrator.generate_recommendations()
        with self._lock:
            if session.recommendations is None:
                session.recommendations = recommendations
            return session.recommendations

    def start_deployment(self, session_id: str, recipe_id: str, stack_name: Optional[str] = None,
                         settings: Optional[Dict[str, Any]] = None) -> DeploymentStatus:
        """
        Start deploying on a background thread.

        Raises:
            KeyError: If the session does not exist
            DeploymentInProgress: If the session is already deploying
        """
        session = self.get_session(session_id)
        with self._lock:
            if session.status == DeploymentStatus.IN_PROGRESS:
                raise DeploymentInProgress(f"A deployment is already in progress for session {session_id}")
            session.status = DeploymentStatus.IN_PROGRESS
            session.exit_code = None
            session.message = None
            session.thread = threading.Thread(
                target=self._run_deployment,
                args=(session, recipe_id, stack_name, dict(settings or {})),
                name=f"deploy-{session_id}",
                daemon=True,
            )
            session.thread.start()
        return DeploymentStatus.IN_PROGRESS

    def get_deployment_status(self, session_id: str) -> DeploymentSession:
        return self.get_session(session_id)

    def list_recipes(self) -> List[Dict[str, Any]]:
        return [recipe.to_api_response() for recipe in self.recipe_loader.load_all()]

    def _run_deployment(self, session: DeploymentSession, recipe_id: str,
                        stack_name: Optional[str], settings: Dict[str, Any]) -> None:
        try:
            exit_code = session.orchestrator.deploy(stack_name=stack_name, recipe_id=recipe_id, overrides=settings)
        except Exception as e:
            if is_expected_exception(e):
                logger.error("Deployment for session %s failed: %s", session.session_id, e)
            else:
                logger.exception("Unhandled error deploying session %s", session.session_id)
            with self._lock:
                session.status = DeploymentStatus.FAILED
                session.message = str(e)
            return

        with self._lock:
            session.exit_code = exit_code
            if exit_code == 0:
                session.status = DeploymentStatus.SUCCEEDED
            else:
                session.status = DeploymentStatus.FAILED
                session.message = f"Deployment failed with exit code {exit_code}"
        logger.info("Deployment for session %s finished: %s", session.session_id, session.status.value)
