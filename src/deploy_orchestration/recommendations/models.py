"""
Recommendation model: a recipe judged applicable to a project, plus the
per-session state of its option settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from deploy_orchestration.project.definition import ProjectDefinition
from deploy_orchestration.recipes import OptionSettingItem, Recipe


class SettingState(str, Enum):
    """Resolution state of one option setting."""
    UNRESOLVED = "Unresolved"
    RESOLVING = "Resolving"
    RESOLVED = "Resolved"
    FAILED = "Failed"


@dataclass
class Recommendation:
    """A Recipe paired with its priority and resolved option setting values."""
    recipe: Recipe
    project_definition: ProjectDefinition
    computed_priority: int
    option_setting_values: Dict[str, Any] = field(default_factory=dict)
    setting_states: Dict[str, SettingState] = field(default_factory=dict)
    type_hint_responses: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.recipe.name

    def get_option_setting_value(self, option_setting: OptionSettingItem) -> Any:
        """Current value of a setting, or None when unset or hidden."""
        return self.option_setting_values.get(option_setting.id)

    def get_state(self, setting_id: str) -> SettingState:
        return self.setting_states.get(setting_id, SettingState.UNRESOLVED)

    def is_visible(self, option_setting: OptionSettingItem) -> bool:
        """Evaluate the setting's depends-on predicate against current values.

        A dependency on a hidden setting hides the dependent too.
        """
        for dep in option_setting.depends_on:
            parent = self.recipe.get_option_setting(dep.id)
            if parent is None or not self.is_visible(parent):
                return False
            if self.option_setting_values.get(dep.id) != dep.value:
                return False
        return True

    def is_ready(self) -> bool:
        """True when every visible setting is resolved and no setting failed."""
        for setting in self.recipe.option_settings:
            state = self.get_state(setting.id)
            if state == SettingState.FAILED:
                return False
            if self.is_visible(setting) and state != SettingState.RESOLVED:
                return False
        return True

    def blocking_settings(self) -> Dict[str, SettingState]:
        """Settings preventing materialization, with their state."""
        blocking = {}
        for setting in self.recipe.option_settings:
            state = self.get_state(setting.id)
            if state == SettingState.FAILED or (self.is_visible(setting) and state != SettingState.RESOLVED):
                blocking[setting.id] = state
        return blocking

    def to_api_response(self) -> Dict[str, Any]:
        """Convert to simplified API response format."""
        return {
            "recipe_id": self.recipe.id,
            "recipe_version": self.recipe.version,
            "name": self.recipe.name,
            "description": self.recipe.short_description or self.recipe.description,
            "target_service": self.recipe.target_service,
            "priority": self.computed_priority,
            "option_settings": dict(self.option_setting_values),
        }
