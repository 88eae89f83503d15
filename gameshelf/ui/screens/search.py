"""Search screen: type-ahead lookup against the metadata service."""

from typing import ClassVar, override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Input, Label, ListItem, ListView, Static

import structlog

from gameshelf.models.game import SearchResult
from gameshelf.services.search import SearchController, SearchState, SearchStatus

from .base import BaseScreen
from .collection import format_release_date

log = structlog.stdlib.get_logger()


def describe_search_state(state: SearchState) -> str:
    """Status line for the current search state."""
    if state.status is SearchStatus.LOADING:
        return f"Searching for '{state.query}'..."
    if state.status is SearchStatus.RESULTS:
        noun = "game" if len(state.results) == 1 else "games"
        return f"{len(state.results)} {noun} found"
    if state.status is SearchStatus.EMPTY:
        if state.error:
            return state.error
        return f"No games found for '{state.query}'"
    return "Start typing to search IGDB"


def format_result_label(result: SearchResult) -> str:
    if result.first_release_date is None:
        return result.name
    return f"{result.name} ({format_release_date(result.first_release_date)[:4]})"


class SearchScreen(BaseScreen):
    """Debounced search box with a selectable result list."""

    SCREEN_TITLE: ClassVar[str] = "Search Games"
    SCREEN_NAME: ClassVar[str] = "search"

    CSS: ClassVar[str] = """
    #search-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }

    #search-status {
        color: $text-muted;
        margin: 1 0;
    }

    #search-results {
        height: 1fr;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Back", show=True),
        Binding("ctrl+l", "clear_search", "Clear", show=True),
    ]

    _controller: SearchController | None
    _results: tuple[SearchResult, ...]

    def __init__(self) -> None:
        super().__init__()
        self._controller = None
        self._results = ()

    @property
    def controller(self) -> SearchController | None:
        return self._controller

    @override
    def compose(self) -> ComposeResult:
        with Container(id="search-container"):
            yield self.create_title_widget()
            yield Input(placeholder="Search for a game...", id="search-input")
            yield Static(describe_search_state(SearchState.idle()), id="search-status")
            yield ListView(id="search-results")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        self._controller = self.shelf_app.create_search_controller()
        if self._controller is None:
            self.query_one("#search-status", Static).update(
                "Search is unavailable: IGDB credentials are not configured"
            )
            self.query_one("#search-input", Input).disabled = True
            return
        self._controller.add_change_listener(self._render_state)
        self.query_one("#search-input", Input).focus()

    @override
    async def on_unmount(self) -> None:
        if self._controller is not None:
            await self._controller.aclose()
        await super().on_unmount()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-input" and self._controller is not None:
            self._controller.set_query(event.value)

    def _render_state(self, state: SearchState) -> None:
        self.query_one("#search-status", Static).update(describe_search_state(state))

        results_view = self.query_one("#search-results", ListView)
        if state.results == self._results:
            return
        self._results = state.results
        _ = results_view.clear()
        for result in state.results:
            _ = results_view.append(ListItem(Label(format_result_label(result))))

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        if self._controller is None:
            return
        index = event.list_view.index
        if index is None or index >= len(self._results):
            return

        intent = self._controller.select_result(self._results[index])
        self.query_one("#search-input", Input).value = ""
        await self.shelf_app.open_game(intent)

    def action_clear_search(self) -> None:
        if self._controller is not None:
            self._controller.clear()
        self.query_one("#search-input", Input).value = ""
