"""Screen components for the TUI application."""

from .base import BaseScreen
from .collection import CollectionScreen
from .detail import GameDetailScreen
from .search import SearchScreen

# Detail pages take a path and are pushed directly, not through the registry
_SCREEN_REGISTRY: dict[str, type[BaseScreen]] = {
    "collection": CollectionScreen,
    "search": SearchScreen,
}


def get_screen_by_name(name: str) -> BaseScreen | None:
    """Get a new screen instance by its registered name, or None if unknown."""
    screen_class = _SCREEN_REGISTRY.get(name)
    if screen_class:
        return screen_class()
    return None


def register_screen(name: str, screen_class: type[BaseScreen]) -> None:
    _SCREEN_REGISTRY[name] = screen_class


def get_registered_screens() -> list[str]:
    return list(_SCREEN_REGISTRY.keys())


__all__ = [
    "BaseScreen",
    "CollectionScreen",
    "GameDetailScreen",
    "SearchScreen",
    "get_screen_by_name",
    "register_screen",
    "get_registered_screens",
]
