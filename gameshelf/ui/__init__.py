"""User interface components using Textual framework."""

from .app import AppServices, GameShelfApp
from .screens import (
    BaseScreen,
    CollectionScreen,
    GameDetailScreen,
    SearchScreen,
    get_registered_screens,
    get_screen_by_name,
    register_screen,
)

__all__ = [
    "AppServices",
    "BaseScreen",
    "CollectionScreen",
    "GameDetailScreen",
    "GameShelfApp",
    "SearchScreen",
    "get_registered_screens",
    "get_screen_by_name",
    "register_screen",
]
