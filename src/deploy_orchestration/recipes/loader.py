"""
Recipe loader utility for the deployment recipe catalog.

Walks one or more search paths for ``*.recipe`` definition files, parses them
(YAML, which also accepts JSON documents) and returns validated Recipe
objects. Broken definitions are skipped with a warning; finding no valid
recipe at all is an error.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union
import logging

import yaml

from deploy_orchestration.exceptions import RecipeLoaderError
from .models import Recipe, create_recipe
from .rules import version_key


logger = logging.getLogger(__name__)

RECIPE_FILE_EXTENSION = ".recipe"


def find_recipe_definitions_path() -> Path:
    """Directory holding the recipe definitions bundled with the package."""
    return Path(__file__).resolve().parent.parent / "recipe_definitions"


class RecipeLoader:
    """Handles loading and parsing of recipe definition files.

    Returns validated Recipe objects; recipes are identified by (id, version).
    """

    def __init__(self, search_paths: Iterable[Union[str, Path]]):
        """
        Initialize the recipe loader.

        Args:
            search_paths: Directories searched recursively for recipe files
        """
        self.search_paths = [Path(p) for p in search_paths]
        self.logger = logging.getLogger(__name__)
        self._cache: Optional[Dict[Tuple[str, str], Recipe]] = None

    def load_all(self) -> List[Recipe]:
        """
        Load every valid recipe found in the search paths.

        Returns:
            List of validated Recipe objects (order is not significant)

        Raises:
            RecipeLoaderError: If no valid recipe definition is found anywhere
        """
        if self._cache is not None:
            return list(self._cache.values())

        recipes: Dict[Tuple[str, str], Recipe] = {}
        problems: List[str] = []

        for search_path in self.search_paths:
            if not search_path.is_dir():
                self.logger.warning("Recipe search path %s does not exist or is not a directory", search_path)
                problems.append(f"{search_path}: not a readable directory")
                continue

            for recipe_file in sorted(search_path.rglob(f"*{RECIPE_FILE_EXTENSION}")):
                recipe = self._load_file(recipe_file)
                if recipe is None:
                    problems.append(f"{recipe_file}: invalid definition")
                    continue
                if recipe.key in recipes:
                    self.logger.warning(
                        "Recipe %s version %s defined again in %s, keeping %s",
                        recipe.id, recipe.version, recipe_file, recipes[recipe.key].recipe_path,
                    )
                    continue
                recipes[recipe.key] = recipe

        if not recipes:
            searched = ", ".join(str(p) for p in self.search_paths) or "<none>"
            detail = f" ({'; '.join(problems)})" if problems else ""
            raise RecipeLoaderError(f"No valid recipe definitions found in: {searched}{detail}")

        self.logger.debug("Found recipes: %s", sorted(recipes))
        self._cache = recipes
        return list(recipes.values())

    def load(self, recipe_id: str) -> Optional[Recipe]:
        """
        Get a recipe by id.

        Args:
            recipe_id: Recipe identifier

        Returns:
            The highest version of the recipe, or None if not found
        """
        matches = [r for r in self.load_all() if r.id == recipe_id]
        if not matches:
            self.logger.warning("Recipe not found: %s", recipe_id)
            return None
        return max(matches, key=lambda r: version_key(r.version))

    def _load_file(self, recipe_file: Path) -> Optional[Recipe]:
        try:
            with open(recipe_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)

            if not data:
                self.logger.warning("Recipe file is empty: %s", recipe_file)
                return None

            return create_recipe(data, recipe_path=recipe_file.resolve())

        except yaml.YAMLError as e:
            self.logger.warning("Failed to parse recipe %s: %s", recipe_file, e)
            return None
        except ValueError as e:
            self.logger.warning("Recipe validation failed for %s: %s", recipe_file, e)
            return None
        except OSError as e:
            self.logger.warning("Failed to read recipe %s: %s", recipe_file, e)
            return None

    def clear_cache(self):
        """Clear the recipe cache."""
        self._cache = None
