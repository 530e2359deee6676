"""
Recipe API routes
List the recipe catalog
"""

from fastapi import APIRouter


def create_router(manager):
    """Create recipe routes"""
    router = APIRouter()

    @router.get("")
    async def list_recipes():
        """List every recipe in the catalog.

        **Returns:**
        Array of recipe objects with `id`, `name`, `version`, `priority`,
        `deployment_type`, `description`, `target_service` and the recipe's
        `option_settings` (id, name, type, default value, type hint and
        `depends_on` conditions).
        """
        return manager.list_recipes()

    return router
