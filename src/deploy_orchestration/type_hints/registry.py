"""Registry for type hint handlers.

Maps the type hint identifiers used in recipe definitions to factories
producing TypeHintCommand instances. The resolver only talks to the
registry, so adding a handler never touches the resolver.
"""

from typing import Callable, Dict, List, Optional

from deploy_orchestration.exceptions import UnknownTypeHint
from .base import TypeHintCommand

TypeHintFactory = Callable[[], TypeHintCommand]


class TypeHintRegistry:
    """Registry of type hint handlers, one per identifier."""

    def __init__(self):
        self._factories: Dict[str, TypeHintFactory] = {}
        self._instances: Dict[str, TypeHintCommand] = {}

    def register(self, type_hint_id: str, factory: TypeHintFactory):
        """Register a handler factory.

        Args:
            type_hint_id: Identifier used in recipes (e.g. 'ECSCluster')
            factory: Zero-argument callable returning the handler
        """
        self._factories[type_hint_id] = factory
        self._instances.pop(type_hint_id, None)

    def get(self, type_hint_id: str) -> Optional[TypeHintCommand]:
        """Get the handler for an identifier, or None if not registered."""
        if type_hint_id in self._instances:
            return self._instances[type_hint_id]
        factory = self._factories.get(type_hint_id)
        if factory is None:
            return None
        handler = factory()
        self._instances[type_hint_id] = handler
        return handler

    def create(self, type_hint_id: str) -> TypeHintCommand:
        """Get the handler for an identifier.

        Raises:
            UnknownTypeHint: If no handler is registered for the identifier
        """
        handler = self.get(type_hint_id)
        if handler is None:
            raise UnknownTypeHint(
                f"No handler registered for type hint '{type_hint_id}'. "
                f"Available type hints: {self.list_type_hints()}"
            )
        return handler

    def list_type_hints(self) -> List[str]:
        """List all registered type hint identifiers."""
        return sorted(self._factories)
