"""Type hint handlers for option settings.

Architecture:
- TypeHintCommand: interface with a single ``execute(recommendation, option_setting)``
- ChooseOrCreateTypeHintCommand: "choose existing or create new" resource selection
- TypeHintRegistry: identifier -> handler factory

Adding a new type hint:
1. Subclass TypeHintCommand (or ChooseOrCreateTypeHintCommand)
2. Register it with ``registry.register('MyHint', lambda: MyHintCommand(...))``
"""

from deploy_orchestration.prompts import Prompter
from .base import (
    ChooseOrCreateTypeHintCommand,
    ChooseOrCreateTypeHintResponse,
    TypeHintCommand,
    TypeHintResponse,
)
from .registry import TypeHintRegistry
from .resource_queryer import (
    AwsCliResourceQueryer,
    RemoteResource,
    ResourceQueryer,
    RetryingResourceQueryer,
    StaticResourceQueryer,
)
from .ecs_cluster import ECSClusterCommand
from .iam_role import IAMRoleCommand
from .beanstalk_application import BeanstalkApplicationCommand


def create_default_registry(resource_queryer: ResourceQueryer, prompter: Prompter) -> TypeHintRegistry:
    """Registry with the built-in handlers."""
    registry = TypeHintRegistry()
    registry.register("ECSCluster", lambda: ECSClusterCommand(resource_queryer, prompter))
    registry.register("IAMRole", lambda: IAMRoleCommand(resource_queryer, prompter))
    registry.register("BeanstalkApplication", lambda: BeanstalkApplicationCommand(resource_queryer, prompter))
    return registry


__all__ = [
    "TypeHintCommand",
    "TypeHintResponse",
    "ChooseOrCreateTypeHintCommand",
    "ChooseOrCreateTypeHintResponse",
    "TypeHintRegistry",
    "AwsCliResourceQueryer",
    "RemoteResource",
    "ResourceQueryer",
    "RetryingResourceQueryer",
    "StaticResourceQueryer",
    "ECSClusterCommand",
    "IAMRoleCommand",
    "BeanstalkApplicationCommand",
    "create_default_registry",
]
