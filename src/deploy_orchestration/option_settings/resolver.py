"""
Option settings resolver.

Determines the effective value of every visible option setting of a
recommendation, in dependency order. Precedence is: explicit override, then
the value persisted by a previous deployment of the same application and
recipe, then the recipe default (or the setting's type hint when it has one).
Values are validated after they are determined and never coerced.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from deploy_orchestration.exceptions import ResourceQueryFailure, SettingValidationFailed, UnknownTypeHint
from deploy_orchestration.recipes import OptionSettingItem
from deploy_orchestration.recommendations import Recommendation, SettingState
from deploy_orchestration.session import OrchestratorSession
from deploy_orchestration.type_hints import TypeHintRegistry

logger = logging.getLogger(__name__)


class OptionSettingsResolver:
    """Resolves option setting values for a recommendation."""

    def __init__(self, type_hint_registry: Optional[TypeHintRegistry] = None):
        """
        Args:
            type_hint_registry: Handlers for type-hinted settings. Without a
                registry, type-hinted settings fall back to their default.
        """
        self.type_hint_registry = type_hint_registry

    def resolve_settings(self, recommendation: Recommendation, session: OrchestratorSession,
                         prior_settings: Optional[Mapping[str, Any]] = None,
                         overrides: Optional[Mapping[str, Any]] = None,
                         stack_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Resolve every option setting of the recommendation's recipe.

        Args:
            recommendation: Recommendation whose settings are resolved in place
            session: Current session
            prior_settings: Values persisted for the same application and recipe
            overrides: Explicit values from the caller (already of the declared type)
            stack_name: Substituted for ``{StackName}`` in defaults

        Returns:
            Mapping of setting id to value for the visible settings

        Raises:
            SettingValidationFailed: On the first setting whose value is rejected
        """
        recipe = recommendation.recipe
        prior_settings = dict(prior_settings or {})
        overrides = dict(overrides or {})

        for setting_id in overrides:
            if recipe.get_option_setting(setting_id) is None:
                raise SettingValidationFailed(setting_id, f"not an option setting of recipe '{recipe.id}'")

        recommendation.option_setting_values.clear()
        recommendation.setting_states.clear()
        recommendation.type_hint_responses.clear()

        for setting in recipe.dependency_order():
            if not recommendation.is_visible(setting):
                recommendation.setting_states[setting.id] = SettingState.UNRESOLVED
                logger.debug("Option setting %s is hidden", setting.id)
                continue
            self._resolve_one(setting, recommendation, session, overrides, prior_settings, stack_name)

        return dict(recommendation.option_setting_values)

    def resolve(self, setting_id: str, recommendation: Recommendation, session: OrchestratorSession,
                current_values: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Re-resolve a single setting, e.g. when the user wants to change it.

        The type hint (if any) sees the current value as its pre-selected
        choice. Dependents are refreshed after the new value is stored.

        Returns:
            The new value of the setting
        """
        setting = self._get_setting(recommendation, setting_id)
        if current_values is not None:
            recommendation.option_setting_values.clear()
            recommendation.option_setting_values.update(current_values)

        if not recommendation.is_visible(setting):
            raise SettingValidationFailed(setting_id, "the setting is not applicable with the current values")

        recommendation.setting_states[setting.id] = SettingState.RESOLVING
        try:
            if setting.type_hint and self.type_hint_registry is not None:
                value = self._execute_type_hint(setting, recommendation)
            elif setting.id in recommendation.option_setting_values:
                value = recommendation.option_setting_values[setting.id]
            else:
                value = self._default_value(setting, recommendation, None)
            self._validate(setting, value)
        except Exception:
            self._fail(setting, recommendation)
            raise

        self._store(setting, recommendation, value)
        self._refresh_dependents(recommendation, session)
        return value

    def apply_setting_value(self, recommendation: Recommendation, setting_id: str, value: Any,
                            session: OrchestratorSession) -> None:
        """Validate and store a caller-supplied value, then refresh dependents."""
        setting = self._get_setting(recommendation, setting_id)
        if not recommendation.is_visible(setting):
            raise SettingValidationFailed(setting_id, "the setting is not applicable with the current values")
        recommendation.setting_states[setting.id] = SettingState.RESOLVING
        try:
            self._validate(setting, value)
        except Exception:
            self._fail(setting, recommendation)
            raise
        self._store(setting, recommendation, value)
        self._refresh_dependents(recommendation, session)

    def _resolve_one(self, setting: OptionSettingItem, recommendation: Recommendation,
                     session: OrchestratorSession, overrides: Mapping[str, Any],
                     prior_settings: Mapping[str, Any], stack_name: Optional[str]) -> None:
        recommendation.setting_states[setting.id] = SettingState.RESOLVING
        try:
            if setting.id in overrides:
                value = overrides[setting.id]
            elif setting.id in prior_settings:
                value = prior_settings[setting.id]
            elif setting.type_hint and self.type_hint_registry is not None:
                value = self._execute_type_hint(setting, recommendation)
            else:
                value = self._default_value(setting, recommendation, stack_name)
            self._validate(setting, value)
        except Exception:
            self._fail(setting, recommendation)
            raise
        self._store(setting, recommendation, value)

    def _refresh_dependents(self, recommendation: Recommendation, session: OrchestratorSession) -> None:
        """Drop values of settings that became hidden and resolve the ones that became visible."""
        for setting in recommendation.recipe.dependency_order():
            if not setting.depends_on:
                continue
            if not recommendation.is_visible(setting):
                recommendation.option_setting_values.pop(setting.id, None)
                recommendation.type_hint_responses.pop(setting.id, None)
                recommendation.setting_states[setting.id] = SettingState.UNRESOLVED
            elif recommendation.get_state(setting.id) != SettingState.RESOLVED:
                self._resolve_one(setting, recommendation, session, {}, {}, None)

    def _execute_type_hint(self, setting: OptionSettingItem, recommendation: Recommendation) -> Any:
        try:
            handler = self.type_hint_registry.create(setting.type_hint)
        except UnknownTypeHint as e:
            raise SettingValidationFailed(setting.id, e.message) from e
        try:
            response = handler.execute(recommendation, setting)
        except ResourceQueryFailure as e:
            raise SettingValidationFailed(setting.id, e.message) from e
        response.validate_selection(setting.id, setting.allow_empty)
        recommendation.type_hint_responses[setting.id] = response
        return response.value()

    @staticmethod
    def _default_value(setting: OptionSettingItem, recommendation: Recommendation,
                       stack_name: Optional[str]) -> Any:
        value = setting.default_value
        if isinstance(value, str):
            project_name = recommendation.project_definition.assembly_name
            value = value.replace("{ProjectName}", project_name)
            value = value.replace("{StackName}", stack_name or project_name)
        return value

    @staticmethod
    def _validate(setting: OptionSettingItem, value: Any) -> None:
        reason = setting.validate_value(value)
        if reason:
            raise SettingValidationFailed(setting.id, reason)

    @staticmethod
    def _store(setting: OptionSettingItem, recommendation: Recommendation, value: Any) -> None:
        recommendation.option_setting_values[setting.id] = value
        recommendation.setting_states[setting.id] = SettingState.RESOLVED
        logger.debug("Resolved option setting %s = %r", setting.id, value)

    @staticmethod
    def _fail(setting: OptionSettingItem, recommendation: Recommendation) -> None:
        recommendation.option_setting_values.pop(setting.id, None)
        recommendation.setting_states[setting.id] = SettingState.FAILED
        logger.warning("Option setting %s failed to resolve", setting.id)

    @staticmethod
    def _get_setting(recommendation: Recommendation, setting_id: str) -> OptionSettingItem:
        setting = recommendation.recipe.get_option_setting(setting_id)
        if setting is None:
            raise SettingValidationFailed(
                setting_id, f"not an option setting of recipe '{recommendation.recipe.id}'"
            )
        return setting
