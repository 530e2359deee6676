"""
Project analysis: the project definition model, its parser and host capabilities.
"""

from .definition import ProjectDefinition
from .capabilities import SystemCapabilities, SystemCapabilityEvaluator
from .parser import ProjectDefinitionParser


__all__ = [
    "ProjectDefinition",
    "ProjectDefinitionParser",
    "SystemCapabilities",
    "SystemCapabilityEvaluator",
]
