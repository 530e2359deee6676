"""
Recommendation engine.

Evaluates each recipe's applicability rules against the project facts and
ranks the recipes that qualify. Recipes are evaluated concurrently; the
ranking only starts once every evaluation has finished.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from deploy_orchestration.exceptions import FailedToGenerateAnyRecommendations
from deploy_orchestration.project.capabilities import SystemCapabilities
from deploy_orchestration.project.definition import ProjectDefinition
from deploy_orchestration.recipes import ProjectFacts, Recipe
from .models import Recommendation

logger = logging.getLogger(__name__)


def rank_recommendations(recommendations: Iterable[Recommendation]) -> List[Recommendation]:
    """Order by priority descending, then recipe name ascending (ordinal)."""
    return sorted(recommendations, key=lambda r: (-r.computed_priority, r.recipe.name))


class RecommendationEngine:
    """Matches recipes against a project."""

    def __init__(self, max_workers: int = 8):
        self.max_workers = max_workers

    def generate_recommendations(self, project_definition: ProjectDefinition,
                                 capabilities: SystemCapabilities,
                                 catalog: Iterable[Recipe]) -> List[Recommendation]:
        """
        Build the ranked list of applicable recipes.

        Args:
            project_definition: Analysed project
            capabilities: Host capabilities
            catalog: Recipes to consider

        Returns:
            Recommendations, highest priority first

        Raises:
            FailedToGenerateAnyRecommendations: If no recipe qualifies
        """
        recipes = list(catalog)
        facts = ProjectFacts(project_definition, capabilities)

        if recipes:
            workers = max(1, min(self.max_workers, len(recipes)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="recipe-rules") as pool:
                results = list(pool.map(lambda r: self._evaluate(r, facts, project_definition), recipes))
        else:
            results = []

        recommendations = [r for r in results if r is not None]
        if not recommendations:
            raise FailedToGenerateAnyRecommendations(
                "The project you are trying to deploy is currently not supported."
            )

        ranked = rank_recommendations(recommendations)
        logger.info("Generated %d recommendation(s): %s",
                    len(ranked), ", ".join(r.recipe.id for r in ranked))
        return ranked

    @staticmethod
    def _evaluate(recipe: Recipe, facts: ProjectFacts,
                  project_definition: ProjectDefinition) -> Optional[Recommendation]:
        for rule in recipe.rules:
            if not rule.evaluate(facts):
                logger.debug("Recipe %s rejected by %s rule", recipe.id, rule.type)
                return None
        return Recommendation(
            recipe=recipe,
            project_definition=project_definition,
            computed_priority=recipe.priority,
        )
