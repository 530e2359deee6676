"""
Session API routes
Create sessions and compute their recommendations
"""

from pathlib import Path

from fastapi import APIRouter, HTTPException

from ..schemas import GetRecommendationsOutput, RecommendationSummary, StartSessionInput, StartSessionOutput


def create_router(manager):
    """Create session routes"""
    router = APIRouter()

    @router.post("", response_model=StartSessionOutput)
    def start_session(body: StartSessionInput):
        """Start a session for the project at `project_path`."""
        session_id = manager.start_session(Path(body.project_path), body.aws_profile_name, body.aws_region)
        return StartSessionOutput(session_id=session_id)

    @router.get("/{session_id}/recommendations", response_model=GetRecommendationsOutput)
    def get_recommendations(session_id: str):
        """Recommendations for the session's project, best first."""
        try:
            recommendations = manager.get_recommendations(session_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return GetRecommendationsOutput(recommendations=[
            RecommendationSummary(**{k: v for k, v in r.to_api_response().items() if k != "option_settings"})
            for r in recommendations
        ])

    return router
