"""Recommendation engine and the Recommendation model."""

from .models import Recommendation, SettingState
from .engine import RecommendationEngine, rank_recommendations


__all__ = [
    "Recommendation",
    "SettingState",
    "RecommendationEngine",
    "rank_recommendations",
]
