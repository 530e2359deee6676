"""Option settings resolution."""

from .resolver import OptionSettingsResolver


__all__ = ["OptionSettingsResolver"]
