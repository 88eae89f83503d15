"""Game detail screen addressed by ``/game/{id}/{slug}`` paths."""

from typing import ClassVar, override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, VerticalScroll
from textual.widgets import Label, ListItem, ListView, LoadingIndicator, Static

import structlog

from gameshelf.models.game import Game, SearchResult
from gameshelf.services.errors import GameNotFoundError
from gameshelf.services.igdb_client import ImageSize, image_url
from gameshelf.services.navigation import DetailPage, NavigationIntent, NotFound, Redirect

from .base import BaseScreen
from .collection import format_release_date, rating_label

log = structlog.stdlib.get_logger()

MAX_REDIRECTS = 3


def get_game_detail_lines(game: Game, in_collection: bool) -> list[str]:
    """Text lines describing a game on its detail page."""
    lines = [
        f"Released: {format_release_date(game.first_release_date)}",
        f"Rating: {rating_label(game.rating)}"
        + (f" ({game.rating_count} votes)" if game.rating_count else ""),
    ]
    if game.platforms:
        lines.append(f"Platforms: {', '.join(game.platform_names)}")
    if game.cover is not None:
        lines.append(f"Cover: {image_url(game.cover.image_id, ImageSize.COVER_BIG)}")
    for shot in game.screenshots:
        lines.append(f"Screenshot: {image_url(shot.image_id, ImageSize.SCREENSHOT_BIG)}")
    lines.append("In your collection" if in_collection else "Not in your collection")
    return lines


class GameDetailScreen(BaseScreen):
    """Shows one game, its similar games and lets the user add or remove it."""

    SCREEN_TITLE: ClassVar[str] = "Game"
    SCREEN_NAME: ClassVar[str] = "detail"

    CSS: ClassVar[str] = """
    #detail-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }

    #detail-summary {
        margin: 1 0;
    }

    #detail-similar {
        height: auto;
        max-height: 10;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Back", show=True),
        Binding("a", "toggle_collection", "Add/Remove", show=True),
    ]

    _path: str
    _page: DetailPage | None

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = path
        self._page = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def page(self) -> DetailPage | None:
        return self._page

    @override
    def compose(self) -> ComposeResult:
        with Container(id="detail-container"):
            yield Static("", id="detail-title", classes="title")
            yield LoadingIndicator(id="detail-loading")
            with VerticalScroll(id="detail-body"):
                yield Static("", id="detail-info")
                yield Static("", id="detail-summary")
                yield Static("Similar games", id="detail-similar-title")
                yield ListView(id="detail-similar")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        self.query_one("#detail-body", VerticalScroll).display = False
        _ = self.run_worker(self._load(), exclusive=True)

    async def _load(self) -> None:
        resolver = self.shelf_app.create_route_resolver()
        if resolver is None:
            self._show_message("Game details are unavailable: IGDB credentials are not configured")
            return

        for _ in range(MAX_REDIRECTS + 1):
            route = await resolver.resolve_path(self._path)
            if isinstance(route, Redirect):
                self._path = route.path
                continue
            if isinstance(route, NotFound):
                _ = self.handle_exception(GameNotFoundError(route.requested_id), "open_game", {"path": self._path})
                self._show_message("Game not found")
                return
            self._show_page(route)
            return

        log.warning("Too many redirects resolving game", path=self._path)
        self._show_message("Game not found")

    def _show_message(self, message: str) -> None:
        self.query_one("#detail-loading", LoadingIndicator).display = False
        self.query_one("#detail-title", Static).update(message)

    def _show_page(self, page: DetailPage) -> None:
        self._page = page
        self.query_one("#detail-loading", LoadingIndicator).display = False
        self.query_one("#detail-title", Static).update(page.game.name)
        self.query_one("#detail-summary", Static).update(page.game.summary or "")
        self.query_one("#detail-body", VerticalScroll).display = True
        self._refresh_info()

        similar_view = self.query_one("#detail-similar", ListView)
        _ = similar_view.clear()
        for similar in page.similar_games:
            _ = similar_view.append(ListItem(Label(similar.name)))
        self.query_one("#detail-similar-title", Static).display = bool(page.similar_games)
        log.info("Detail page shown", game_id=page.game.id, similar=len(page.similar_games))

    def _refresh_info(self) -> None:
        if self._page is None:
            return
        manager = self.collection
        in_collection = manager.is_in_collection(self._page.game.id) if manager else False
        self.query_one("#detail-info", Static).update("\n".join(get_game_detail_lines(self._page.game, in_collection)))

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        if self._page is None:
            return
        index = event.list_view.index
        if index is None or index >= len(self._page.similar_games):
            return
        similar: SearchResult = self._page.similar_games[index]
        await self.shelf_app.open_game(NavigationIntent.for_game(similar.id, similar.name))

    def action_toggle_collection(self) -> None:
        if self._page is None:
            return
        manager = self.collection
        if manager is None or not manager.is_ready:
            self.notify_warning("Collection is not available")
            return

        game = self._page.game
        if manager.toggle_game(game):
            self.notify_success(f"Added '{game.name}' to your collection")
        else:
            self.notify_success(f"Removed '{game.name}' from your collection")
        self._refresh_info()
