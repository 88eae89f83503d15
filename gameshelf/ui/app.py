"""Main Textual application with screen management and shared services."""

from dataclasses import dataclass
from typing import ClassVar, override

from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.widgets import Footer, Header

import structlog

from gameshelf.models.config import AppConfig
from gameshelf.services.collection import CollectionManager
from gameshelf.services.igdb_client import IGDBClient
from gameshelf.services.navigation import DetailRouteResolver, NavigationIntent
from gameshelf.services.search import SearchController


log = structlog.stdlib.get_logger()


@dataclass
class AppServices:
    """Services shared by every screen."""
    collection: CollectionManager
    metadata: IGDBClient | None = None
    config: AppConfig | None = None

    @property
    def search_debounce(self) -> float:
        return self.config.search_debounce if self.config else 0.5

    @property
    def search_limit(self) -> int:
        return self.config.search_limit if self.config else 10


class GameShelfApp(App[None]):
    """Root application: collection browser, search and detail pages."""

    CSS: ClassVar[str] = """
    Screen {
        background: $surface;
    }

    .title {
        text-align: center;
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit", show=True),
        Binding("ctrl+q", "quit", "Quit", show=False, priority=True),
        Binding("escape", "go_back", "Back", show=True),
        Binding("/", "open_search", "Search", show=True),
        Binding("?", "show_help", "Help", show=True),
    ]

    _services: AppServices | None
    _navigation_stack: list[str]

    def __init__(self, services: AppServices | None = None) -> None:
        """Initialize the application.

        Args:
            services: Collection manager and metadata client; screens show
                an empty, offline view when omitted
        """
        super().__init__()
        self.title = "Game Shelf"  # type: ignore[assignment]
        self.sub_title = "Your IGDB game collection"  # type: ignore[assignment]
        self._services = services
        self._navigation_stack = []

        log.info("GameShelfApp initialized")

    @property
    def services(self) -> AppServices | None:
        return self._services

    @property
    def collection(self) -> CollectionManager | None:
        return self._services.collection if self._services else None

    @property
    def navigation_stack(self) -> list[str]:
        return self._navigation_stack.copy()

    def create_search_controller(self) -> SearchController | None:
        """Build a search controller bound to the metadata client."""
        if self._services is None or self._services.metadata is None:
            return None
        return SearchController(
            self._services.metadata,
            debounce=self._services.search_debounce,
            limit=self._services.search_limit,
        )

    def create_route_resolver(self) -> DetailRouteResolver | None:
        if self._services is None or self._services.metadata is None:
            return None
        return DetailRouteResolver(self._services.metadata)

    @override
    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

    async def on_mount(self) -> None:
        if self._services is not None:
            self._services.collection.activate()
        await self.push_screen_with_tracking("collection")

    async def push_screen_with_tracking(self, screen_name: str) -> None:
        """Push a registered screen and track it in the navigation stack."""
        from gameshelf.ui.screens import get_screen_by_name

        screen = get_screen_by_name(screen_name)
        if screen:
            self._navigation_stack.append(screen_name)
            await self.push_screen(screen)
            log.info("Screen pushed", screen=screen_name, stack_depth=len(self._navigation_stack))
        else:
            log.warning("Unknown screen requested", screen=screen_name)

    async def open_game(self, intent: NavigationIntent) -> None:
        """Open the detail page addressed by ``intent``."""
        from gameshelf.ui.screens.detail import GameDetailScreen

        self._navigation_stack.append(intent.path)
        await self.push_screen(GameDetailScreen(intent.path))
        log.info("Detail page opened", path=intent.path, stack_depth=len(self._navigation_stack))

    async def action_go_back(self) -> None:
        if len(self._navigation_stack) > 1:
            current = self._navigation_stack.pop()
            log.info("Navigating back", from_screen=current, stack_depth=len(self._navigation_stack))
            _ = self.pop_screen()
        else:
            log.debug("Already at root screen, cannot go back")

    async def action_open_search(self) -> None:
        if self._navigation_stack and self._navigation_stack[-1] == "search":
            return
        await self.push_screen_with_tracking("search")

    async def action_show_help(self) -> None:
        self.notify("'/' search, 's' change sort, 'd' remove, 'a' add/remove on a game page, 'escape' back, 'q' quit")
