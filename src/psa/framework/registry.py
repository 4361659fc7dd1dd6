"""Controller registry: the explicit table the dispatcher resolves class names in.

Manifesto:
    Controllers are looked up by name in a table populated at startup,
    never by importing whatever class a URL names. A path can only reach
    classes that were registered on purpose.

Usage:
    @register_controller
    class User_Controller(Controller):
        def edit_action(self, user_id):
            ...

    # Or explicitly, under another name
    registry.register(UserController, name="User_Controller")

Tags:
    psa-core, framework, registry, controller-discovery, lookup

Doc-Types:
    api-reference
"""

from collections.abc import Callable
from typing import Any, TypeVar, overload

from psa.core.errors import UnknownClassError
from psa.framework.logging import get_logger

logger = get_logger(__name__)

C = TypeVar("C", bound=type)


class ControllerRegistry:
    """Name → controller class table."""

    def __init__(self) -> None:
        self._controllers: dict[str, type] = {}

    def register(self, cls: type, name: str | None = None) -> type:
        """Register ``cls`` under ``name`` (defaults to the class name).

        Raises:
            ValueError: If the name is already taken by another class.
        """
        key = name or cls.__name__
        existing = self._controllers.get(key)
        if existing is not None and existing is not cls:
            raise ValueError(f"Controller '{key}' is already registered")
        self._controllers[key] = cls
        logger.debug("controller_registered", name=key, cls=cls.__qualname__)
        return cls

    def get(self, name: str) -> type:
        """Get a controller class by name.

        Raises:
            UnknownClassError: If nothing is registered under ``name``.
        """
        try:
            return self._controllers[name]
        except KeyError:
            raise UnknownClassError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)

    def names(self) -> list[str]:
        return sorted(self._controllers)

    def clear(self) -> None:
        self._controllers.clear()


# Process-wide table filled by @register_controller
default_registry = ControllerRegistry()


@overload
def register_controller(cls: C) -> C: ...


@overload
def register_controller(cls: str | None = None) -> Callable[[C], C]: ...


def register_controller(cls: Any = None) -> Any:
    """Decorator registering a controller in :data:`default_registry`.

    Works bare (``@register_controller``) or with a name
    (``@register_controller("Default_Controller")``).
    """
    if isinstance(cls, type):
        return default_registry.register(cls)

    name = cls

    def decorator(klass: C) -> C:
        return default_registry.register(klass, name=name)

    return decorator


def get_controller(name: str) -> type:
    """Get a controller class from the default registry."""
    return default_registry.get(name)


def list_controllers() -> list[str]:
    """List all controller names in the default registry."""
    return default_registry.names()


def clear_registry() -> None:
    """Clear the default registry (for testing)."""
    default_registry.clear()


__all__ = [
    "ControllerRegistry",
    "clear_registry",
    "default_registry",
    "get_controller",
    "list_controllers",
    "register_controller",
]
