"""
FastAPI application factory for server mode.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from deploy_orchestration.core import DeploymentSessionManager
from deploy_orchestration.exceptions import DeploymentInProgress, DeployToolException

logger = logging.getLogger(__name__)


def create_app(manager: DeploymentSessionManager) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        manager: DeploymentSessionManager instance

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="AWS Deploy Tool",
        version="1.0.0",
        description="Recommends, generates and deploys CDK projects for .NET applications",
    )

    @app.exception_handler(DeployToolException)
    async def deploy_tool_exception_handler(request: Request, exc: DeployToolException):
        status_code = 409 if isinstance(exc, DeploymentInProgress) else 400
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    # Register route modules
    from .routes import deployments, recipes, sessions

    app.include_router(sessions.create_router(manager), prefix="/api/v1/session", tags=["Sessions"])
    app.include_router(deployments.create_router(manager), prefix="/api/v1/session", tags=["Deployments"])
    app.include_router(recipes.create_router(manager), prefix="/api/v1/recipes", tags=["Recipes"])

    return app
