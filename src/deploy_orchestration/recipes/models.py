"""
Recipe models with Pydantic schema validation.

This module defines the deployment recipe, its option setting schema and the
checks applied when a recipe definition is loaded (unique setting ids,
resolvable and acyclic ``depends_on`` references).
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from deploy_orchestration.exceptions import SettingValidationFailed
from .rules import RecipeRule
from .validators import OptionSettingValidator

_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off"}


class OptionSettingType(str, Enum):
    """Valid option setting value types."""
    STRING = "String"
    INT = "Int"
    DOUBLE = "Double"
    BOOL = "Bool"


class SettingDependency(BaseModel):
    """A setting is visible only while another setting holds this value."""
    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    value: Any = None


class OptionSettingItem(BaseModel):
    """One configurable parameter of a recipe."""
    model_config = {"frozen": True}

    id: str = Field(..., min_length=1, description="Setting identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    description: Optional[str] = Field(default=None)
    type: OptionSettingType = Field(default=OptionSettingType.STRING)
    default_value: Any = Field(default=None)
    validators: List[OptionSettingValidator] = Field(default_factory=list)
    depends_on: List[SettingDependency] = Field(default_factory=list)
    type_hint: Optional[str] = Field(default=None, description="Type hint handler identifier")
    type_hint_data: Dict[str, Any] = Field(default_factory=dict)
    allow_empty: bool = Field(default=False, description="Type hint may leave the selection unset")
    advanced: bool = False
    updatable: bool = True

    @field_validator("validators", "depends_on", mode="before")
    @classmethod
    def ensure_list(cls, v):
        """Treat a missing YAML list as empty."""
        if v is None:
            return []
        return v

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def check_type(self, value: Any) -> Optional[str]:
        """Return a reason if ``value`` is not of the declared type. None is always accepted."""
        if value is None:
            return None
        if self.type == OptionSettingType.BOOL:
            ok = isinstance(value, bool)
        elif self.type == OptionSettingType.INT:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif self.type == OptionSettingType.DOUBLE:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            ok = isinstance(value, str)
        if not ok:
            return f"expected a value of type {self.type.value}, got {type(value).__name__}"
        return None

    def parse_input(self, text: str) -> Any:
        """Convert textual input (CLI, API) into a value of the declared type.

        Raises:
            SettingValidationFailed: If the text cannot be read as the declared type
        """
        if self.type == OptionSettingType.STRING:
            return text
        stripped = text.strip()
        try:
            if self.type == OptionSettingType.INT:
                return int(stripped)
            if self.type == OptionSettingType.DOUBLE:
                return float(stripped)
        except ValueError:
            raise SettingValidationFailed(self.id, f"'{text}' is not a valid {self.type.value}")

        lowered = stripped.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise SettingValidationFailed(self.id, f"'{text}' is not a valid {self.type.value}")

    def validate_value(self, value: Any) -> Optional[str]:
        """Run the type check and every validator; return the first failure reason."""
        reason = self.check_type(value)
        if reason:
            return reason
        for validator in self.validators:
            reason = validator.validate_value(value)
            if reason:
                return reason
        return None

    def to_api_response(self) -> Dict[str, Any]:
        """Convert to simplified API response format."""
        result = {
            "id": self.id,
            "name": self.display_name,
            "type": self.type.value,
            "default_value": self.default_value,
            "advanced": self.advanced,
        }
        if self.description:
            result["description"] = self.description
        if self.type_hint:
            result["type_hint"] = self.type_hint
        if self.depends_on:
            result["depends_on"] = [d.model_dump() for d in self.depends_on]
        return result


class Recipe(BaseModel):
    """A versioned deployment blueprint."""
    model_config = {"frozen": True}

    # Required fields
    id: str = Field(..., min_length=1, description="Recipe identifier")
    name: str = Field(..., min_length=1, description="Display name")

    # Optional fields
    version: str = Field(default="1.0.0", description="Semantic version")
    description: Optional[str] = Field(default=None)
    short_description: Optional[str] = Field(default=None)
    target_service: Optional[str] = Field(default=None, description="AWS service targeted")
    deployment_type: str = Field(default="cdk")
    priority: int = Field(default=0, description="Higher ranks first")
    cdk_project_template: Optional[str] = Field(default=None, description="Template dir, relative to the recipe file")
    rules: List[RecipeRule] = Field(default_factory=list)
    option_settings: List[OptionSettingItem] = Field(default_factory=list)

    # Path information (set by loader)
    recipe_path: Optional[Path] = Field(default=None, description="Recipe definition file")

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v):
        """YAML reads ``version: 1.0`` as a float."""
        if v is None:
            return "1.0.0"
        return str(v)

    @field_validator("rules", "option_settings", mode="before")
    @classmethod
    def ensure_list(cls, v):
        if v is None:
            return []
        return v

    @model_validator(mode="after")
    def check_option_settings(self) -> "Recipe":
        ids = [s.id for s in self.option_settings]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(f"duplicate option setting ids: {sorted(duplicates)}")
        known = set(ids)
        for setting in self.option_settings:
            for dep in setting.depends_on:
                if dep.id not in known:
                    raise ValueError(f"option setting '{setting.id}' depends on unknown setting '{dep.id}'")
                if dep.id == setting.id:
                    raise ValueError(f"option setting '{setting.id}' depends on itself")
        # Raises on cycles
        self.dependency_order()
        return self

    @property
    def key(self) -> tuple:
        return (self.id, self.version)

    @property
    def template_directory(self) -> Optional[Path]:
        if not self.cdk_project_template:
            return None
        base = self.recipe_path.parent if self.recipe_path else Path.cwd()
        return base / self.cdk_project_template

    def get_option_setting(self, setting_id: str) -> Optional[OptionSettingItem]:
        for setting in self.option_settings:
            if setting.id == setting_id:
                return setting
        return None

    def dependents_of(self, setting_id: str) -> List[OptionSettingItem]:
        """Settings whose visibility references ``setting_id``."""
        return [s for s in self.option_settings if any(d.id == setting_id for d in s.depends_on)]

    def dependency_order(self) -> List[OptionSettingItem]:
        """Option settings ordered so every setting comes after the ones it depends on.

        Declaration order is kept wherever dependencies allow it.

        Raises:
            ValueError: If the ``depends_on`` references form a cycle
        """
        remaining = list(self.option_settings)
        placed: set = set()
        ordered: List[OptionSettingItem] = []
        while remaining:
            for setting in remaining:
                if all(d.id in placed for d in setting.depends_on):
                    ordered.append(setting)
                    placed.add(setting.id)
                    remaining.remove(setting)
                    break
            else:
                cycle = ", ".join(s.id for s in remaining)
                raise ValueError(f"option settings have circular dependencies: {cycle}")
        return ordered

    def to_api_response(self) -> Dict[str, Any]:
        """Convert to simplified API response format."""
        result = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "priority": self.priority,
            "deployment_type": self.deployment_type,
            "option_settings": [s.to_api_response() for s in self.option_settings],
        }
        if self.short_description or self.description:
            result["description"] = self.short_description or self.description
        if self.target_service:
            result["target_service"] = self.target_service
        return result


def create_recipe(data: Dict[str, Any], recipe_path: Optional[Path] = None) -> Recipe:
    """Build a validated Recipe from raw definition data.

    Args:
        data: Raw recipe data from the definition file
        recipe_path: File the data was read from

    Returns:
        Validated Recipe

    Raises:
        ValueError: If required fields are missing or invalid
    """
    if not data or not isinstance(data, dict):
        raise ValueError("Recipe data cannot be empty")

    for required in ("id", "name"):
        if required not in data:
            raise ValueError(f"Recipe must have a '{required}' field")

    if recipe_path is not None:
        data = {**data, "recipe_path": recipe_path}

    try:
        return Recipe(**data)
    except Exception as e:
        raise ValueError(f"Failed to create recipe '{data.get('id')}': {e}")
