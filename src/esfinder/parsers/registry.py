# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry of parser backends.

Backends are registered by name with a factory so that nothing is
imported or loaded until an analysis context asks for a backend.
"""

import logging
from typing import Any, Callable, Dict, List

from .base import ParserBackend
from .estree_backend import EstreeBackend
from .tree_sitter_backend import TreeSitterBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[..., ParserBackend]


class BackendRegistry:
    """Name -> factory mapping for parser backends.

    Thread Safety:
    - NOT thread-safe: Register all backends during initialization
    """

    def __init__(self) -> None:
        self._factories: Dict[str, BackendFactory] = {}

    def register(self, name: str, factory: BackendFactory) -> None:
        """Register a backend factory.

        Raises:
            TypeError: If factory is not callable.
        """
        if not callable(factory):
            raise TypeError(f"Backend factory must be callable, got {type(factory)}")

        if name in self._factories:
            logger.debug(f"Replacing parser backend '{name}'")
        self._factories[name] = factory
        logger.debug(f"Registered parser backend '{name}'")

    def create(self, name: str, **kwargs: Any) -> ParserBackend:
        """Instantiate a registered backend.

        Raises:
            KeyError: If no backend is registered under name.
            TypeError: If the factory does not produce a ParserBackend.
        """
        if name not in self._factories:
            raise KeyError(
                f"Unknown parser backend '{name}'. Available: {', '.join(self.names())}"
            )
        backend = self._factories[name](**kwargs)
        if not isinstance(backend, ParserBackend):
            raise TypeError(
                f"Factory for '{name}' must return a ParserBackend instance, got {type(backend)}"
            )
        return backend

    def names(self) -> List[str]:
        return sorted(self._factories)

    def clear(self) -> None:
        """Remove all registered backends.

        Used for testing and reconfiguration.
        """
        self._factories.clear()

    def count(self) -> int:
        return len(self._factories)


def create_default_registry() -> BackendRegistry:
    """Registry with the shipped backends: typescript, javascript and estree."""
    registry = BackendRegistry()
    registry.register("typescript", lambda: TreeSitterBackend("typescript"))
    registry.register("javascript", lambda: TreeSitterBackend("javascript"))
    registry.register("estree", EstreeBackend)
    return registry
