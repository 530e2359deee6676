"""
Recipe management module.

Provides Recipe models with Pydantic validation, the applicability rule
variants, option setting validators and RecipeLoader for reading recipe
definition files.
"""

from .models import (
    Recipe,
    OptionSettingItem,
    OptionSettingType,
    SettingDependency,
    create_recipe,
)
from .rules import (
    ProjectFacts,
    RecipeRule,
    FieldEqualsRule,
    FieldRangeRule,
    FileExistsRule,
    DependencyPresentRule,
    CapabilityPresentRule,
    version_key,
)
from .validators import (
    OptionSettingValidator,
    RequiredValidator,
    RegexValidator,
    RangeValidator,
    AllowedValuesValidator,
)
from .loader import RecipeLoader, find_recipe_definitions_path, RECIPE_FILE_EXTENSION


__all__ = [
    # Main classes
    "Recipe",
    "RecipeLoader",
    "OptionSettingItem",
    "OptionSettingType",
    "SettingDependency",

    # Rules
    "ProjectFacts",
    "RecipeRule",
    "FieldEqualsRule",
    "FieldRangeRule",
    "FileExistsRule",
    "DependencyPresentRule",
    "CapabilityPresentRule",

    # Validators
    "OptionSettingValidator",
    "RequiredValidator",
    "RegexValidator",
    "RangeValidator",
    "AllowedValuesValidator",

    # Helpers
    "create_recipe",
    "find_recipe_definitions_path",
    "version_key",
    "RECIPE_FILE_EXTENSION",
]
