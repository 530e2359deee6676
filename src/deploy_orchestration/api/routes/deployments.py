"""
Deployment API routes
Start a deployment and poll its status
"""

from fastapi import APIRouter, HTTPException

from ..schemas import GetDeploymentStatusOutput, StartDeploymentInput


def create_router(manager):
    """Create deployment routes"""
    router = APIRouter()

    @router.put("/{session_id}/deployment", response_model=GetDeploymentStatusOutput)
    def start_deployment(session_id: str, body: StartDeploymentInput):
        """Start deploying the session's project with a recipe; runs in the background."""
        try:
            status = manager.start_deployment(session_id, body.recipe_id, body.stack_name, body.settings)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return GetDeploymentStatusOutput(status=status)

    @router.get("/{session_id}/deployment", response_model=GetDeploymentStatusOutput)
    def get_deployment_status(session_id: str):
        """Current status of the session's deployment."""
        try:
            session = manager.get_deployment_status(session_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return GetDeploymentStatusOutput(status=session.status, exit_code=session.exit_code,
                                         message=session.message)

    return router
