"""
Request/response schemas for the server-mode API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from deploy_orchestration.core import DeploymentStatus


class StartSessionInput(BaseModel):
    """Schema for session creation requests."""
    project_path: str
    aws_profile_name: Optional[str] = None
    aws_region: Optional[str] = None

    @field_validator('project_path')
    @classmethod
    def project_path_must_not_be_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('project_path must not be empty')
        return v


class StartSessionOutput(BaseModel):
    session_id: str


class RecommendationSummary(BaseModel):
    """One recommendation as shown to API clients."""
    recipe_id: str
    recipe_version: str
    name: str
    description: Optional[str] = None
    target_service: Optional[str] = None
    priority: int


class GetRecommendationsOutput(BaseModel):
    recommendations: List[RecommendationSummary]


class StartDeploymentInput(BaseModel):
    """Schema for deployment requests."""
    recipe_id: str
    stack_name: Optional[str] = None
    settings: Dict[str, Any] = {}

    @field_validator('recipe_id')
    @classmethod
    def recipe_id_must_not_be_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('recipe_id must not be empty')
        return v


class GetDeploymentStatusOutput(BaseModel):
    """Progress of the session's deployment."""
    status: DeploymentStatus
    exit_code: Optional[int] = None
    message: Optional[str] = None
