"""Base classes for type hint handlers.

A type hint lets an option setting acquire its value through a lookup
(usually listing existing cloud resources) instead of a static default. The
resolver only knows the TypeHintCommand interface; handlers are found through
the TypeHintRegistry by the identifier declared in the recipe.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

from deploy_orchestration.exceptions import SettingValidationFailed
from deploy_orchestration.prompts import Prompter, UserInputConfiguration
from .resource_queryer import RemoteResource, ResourceQueryer

if TYPE_CHECKING:
    from deploy_orchestration.recipes import OptionSettingItem
    from deploy_orchestration.recommendations import Recommendation


class TypeHintResponse(ABC):
    """Value produced by a type hint handler."""

    @abstractmethod
    def value(self) -> Any:
        """The value stored for the option setting."""

    def validate_selection(self, setting_id: str, allow_empty: bool) -> None:
        """Raise SettingValidationFailed if the response is not usable."""


@dataclass(frozen=True)
class ChooseOrCreateTypeHintResponse(TypeHintResponse):
    """Either a reference to an existing resource or the name of a new one."""
    create_new: bool
    existing_ref: str = ""
    new_name: str = ""

    def validate_selection(self, setting_id: str, allow_empty: bool) -> None:
        if self.existing_ref and self.new_name:
            raise SettingValidationFailed(
                setting_id, "an existing resource and a new resource name cannot both be selected"
            )
        if self.create_new and not self.new_name:
            raise SettingValidationFailed(setting_id, "a name is required for the new resource")
        if not self.create_new and self.new_name:
            raise SettingValidationFailed(setting_id, "a new resource name was given without creating a new resource")
        if not self.existing_ref and not self.new_name and not allow_empty:
            raise SettingValidationFailed(setting_id, "select an existing resource or name a new one")

    def value(self) -> Optional[str]:
        if self.create_new:
            return self.new_name
        return self.existing_ref or None


class TypeHintCommand(ABC):
    """Handler for one type hint identifier."""

    @abstractmethod
    def execute(self, recommendation: "Recommendation", option_setting: "OptionSettingItem") -> TypeHintResponse:
        """Acquire a value for ``option_setting``.

        The setting's current value (if any) must be offered as the
        pre-selected choice.
        """


class ChooseOrCreateTypeHintCommand(TypeHintCommand):
    """Lists existing resources and lets the user pick one or name a new one."""

    title = "Select a resource:"

    def __init__(self, resource_queryer: ResourceQueryer, prompter: Prompter):
        self.resource_queryer = resource_queryer
        self.prompter = prompter

    @abstractmethod
    def list_resources(self, option_setting: "OptionSettingItem") -> List[RemoteResource]:
        """Existing resources the user can choose from."""

    def execute(self, recommendation, option_setting):
        resources = self.list_resources(option_setting)
        current = recommendation.get_option_setting_value(option_setting)

        refs = {r.ref for r in resources}
        if current and current not in refs:
            # A previously chosen new name is offered again as the default new name
            default_new_name = str(current)
        else:
            default_new_name = self._default_new_name(recommendation, option_setting)

        config = UserInputConfiguration(
            display_selector=lambda r: r.name,
            default_selector=lambda r: current is not None and r.ref == current,
            default_new_name=default_new_name,
            ask_new_name=True,
            can_be_empty=option_setting.allow_empty,
        )
        response = self.prompter.ask_user_to_choose_or_create_new(resources, self.title, config)

        if response.create_new:
            return ChooseOrCreateTypeHintResponse(create_new=True, new_name=response.new_name or "")
        selected = response.selected_option
        return ChooseOrCreateTypeHintResponse(create_new=False, existing_ref=selected.ref if selected else "")

    @staticmethod
    def _default_new_name(recommendation, option_setting) -> str:
        default = option_setting.default_value
        if isinstance(default, str):
            return default.replace("{ProjectName}", recommendation.project_definition.assembly_name)
        return recommendation.project_definition.assembly_name
