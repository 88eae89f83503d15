"""Tests for the TUI: screen registry, navigation stack, display helpers and screens."""

import json

import pytest
from hypothesis import given, settings, strategies as st
from textual.widgets import DataTable

from gameshelf.models import CollectionEntry, Game, ImageRef, Platform, SearchResult, SortOrder
from gameshelf.services.collection import CollectionManager
from gameshelf.services.navigation import NavigationIntent
from gameshelf.services.search import SearchState
from gameshelf.services.storage import COLLECTION_KEY, CollectionStore, MemoryStorage
from gameshelf.ui.app import AppServices, GameShelfApp
from gameshelf.ui.screens import (
    BaseScreen,
    CollectionScreen,
    SearchScreen,
    get_registered_screens,
    get_screen_by_name,
    register_screen,
)
from gameshelf.ui.screens.collection import (
    format_date_added,
    format_release_date,
    get_entry_display_row,
    next_sort_order,
    rating_label,
)
from gameshelf.ui.screens.detail import GameDetailScreen, get_game_detail_lines
from gameshelf.ui.screens.search import describe_search_state, format_result_label


def make_manager(*games: Game) -> CollectionManager:
    ticks = iter(range(1_700_000_000_000, 1_700_000_000_000 + 1000))
    manager = CollectionManager(CollectionStore(MemoryStorage()), clock=lambda: next(ticks))
    manager.activate()
    for game in games:
        manager.add_game(game)
    return manager


class TestScreenRegistry:
    def test_collection_and_search_are_registered(self) -> None:
        assert isinstance(get_screen_by_name("collection"), CollectionScreen)
        assert isinstance(get_screen_by_name("search"), SearchScreen)
        assert {"collection", "search"} <= set(get_registered_screens())

    def test_unknown_screen_returns_none(self) -> None:
        assert get_screen_by_name("nonexistent_screen") is None

    def test_register_screen(self) -> None:
        class ExtraScreen(BaseScreen):
            SCREEN_NAME = "extra"

        register_screen("extra", ExtraScreen)

        assert isinstance(get_screen_by_name("extra"), ExtraScreen)

    def test_screen_metadata(self) -> None:
        assert BaseScreen.SCREEN_NAME == "base"
        assert CollectionScreen.SCREEN_NAME == "collection"
        assert SearchScreen.SCREEN_NAME == "search"
        assert GameDetailScreen.SCREEN_NAME == "detail"

    def test_screen_starts_inactive(self) -> None:
        assert CollectionScreen().screen_is_active is False


class TestApp:
    def test_app_starts_with_empty_navigation_stack(self) -> None:
        assert GameShelfApp().navigation_stack == []

    def test_navigation_stack_is_copy(self) -> None:
        app = GameShelfApp()
        stack = app.navigation_stack
        stack.append("test")
        assert app.navigation_stack == []

    def test_offline_app_has_no_search_or_resolver(self) -> None:
        app = GameShelfApp(AppServices(collection=make_manager()))
        assert app.collection is not None
        assert app.create_search_controller() is None
        assert app.create_route_resolver() is None

    def test_services_defaults(self) -> None:
        services = AppServices(collection=make_manager())
        assert services.search_debounce == 0.5
        assert services.search_limit == 10

    @given(st.lists(st.sampled_from(["collection", "search", "/game/1/doom"]), min_size=2, max_size=10))
    @settings(max_examples=50)
    def test_back_navigation_preserves_order(self, screens: list[str]) -> None:
        app = GameShelfApp()
        for screen in screens:
            app._navigation_stack.append(screen)

        remaining = screens.copy()
        while len(app._navigation_stack) > 1:
            assert app._navigation_stack.pop() == remaining.pop()
            assert app._navigation_stack == remaining


class TestDisplayHelpers:
    def test_format_release_date(self) -> None:
        assert format_release_date(1431993600) == "2015-05-19"
        assert format_release_date(None) == "TBA"

    def test_rating_label(self) -> None:
        assert rating_label(92.4) == "92/100"
        assert rating_label(None) == "-"

    def test_entry_display_row(self) -> None:
        game = Game(id=1, name="Hades", rating=93.0, first_release_date=1600905600)
        entry = CollectionEntry(game=game, date_added=1_700_000_000_000)

        assert get_entry_display_row(entry) == ("Hades", "2020-09-24", "93/100", "2023-11-14 22:13")

    def test_entry_display_row_accepts_string_timestamp(self) -> None:
        entry = CollectionEntry(game=Game(id=1, name="Old"), date_added="1000")

        assert get_entry_display_row(entry)[3] == "1970-01-01 00:00"

    def test_entry_display_row_tolerates_out_of_range_timestamp(self) -> None:
        entry = CollectionEntry(game=Game(id=1, name="Far future"), date_added="99999999999999999999")

        assert get_entry_display_row(entry)[3] == "-"
        assert format_date_added(10**400) == "-"

    def test_next_sort_order_cycles(self) -> None:
        assert next_sort_order(SortOrder.DATE_ADDED) is SortOrder.RELEASE_DATE
        assert next_sort_order(SortOrder.RELEASE_DATE) is SortOrder.DATE_ADDED

    def test_describe_search_state(self) -> None:
        assert describe_search_state(SearchState.idle()) == "Start typing to search IGDB"
        assert describe_search_state(SearchState.loading("doom")) == "Searching for 'doom'..."
        assert describe_search_state(SearchState.found("doom", [SearchResult(1, "Doom")])) == "1 game found"
        assert describe_search_state(SearchState.empty("zzz")) == "No games found for 'zzz'"
        assert describe_search_state(SearchState.empty("zzz", error="No credentials")) == "No credentials"

    def test_format_result_label(self) -> None:
        assert format_result_label(SearchResult(1, "Doom")) == "Doom"
        assert format_result_label(SearchResult(1, "Doom", first_release_date=737078400)) == "Doom (1993)"

    def test_game_detail_lines(self) -> None:
        game = Game(
            id=1942,
            name="The Witcher 3",
            rating=92.4,
            rating_count=2000,
            first_release_date=1431993600,
            cover=ImageRef(1, "co1wyy"),
            screenshots=(ImageRef(2, "sc1"),),
            platforms=(Platform(6, "PC"), Platform(48, "PlayStation 4")),
        )

        lines = get_game_detail_lines(game, in_collection=True)

        assert lines[0] == "Released: 2015-05-19"
        assert lines[1] == "Rating: 92/100 (2000 votes)"
        assert "Platforms: PC, PlayStation 4" in lines
        assert "Cover: https://images.igdb.com/igdb/image/upload/t_cover_big/co1wyy.jpg" in lines
        assert "Screenshot: https://images.igdb.com/igdb/image/upload/t_screenshot_big/sc1.jpg" in lines
        assert lines[-1] == "In your collection"
        assert get_game_detail_lines(Game(id=1, name="X"), in_collection=False)[-1] == "Not in your collection"


class TestCollectionScreen:
    @pytest.mark.asyncio
    async def test_lists_sorts_and_removes_entries(self) -> None:
        manager = make_manager(
            Game(id=1, name="Older release", first_release_date=100),
            Game(id=2, name="Newer release", first_release_date=200),
        )
        app = GameShelfApp(AppServices(collection=manager))

        async with app.run_test() as pilot:
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, CollectionScreen)
            assert screen.query_one("#collection-table", DataTable).row_count == 2
            assert app.navigation_stack == ["collection"]

            await pilot.press("s")
            assert screen.sort_order is SortOrder.RELEASE_DATE

            await pilot.press("d")
            await pilot.pause()

            assert not manager.is_in_collection(2)
            assert manager.is_in_collection(1)
            assert screen.query_one("#collection-table", DataTable).row_count == 1

    @pytest.mark.asyncio
    async def test_detail_page_without_credentials(self) -> None:
        app = GameShelfApp(AppServices(collection=make_manager()))

        async with app.run_test() as pilot:
            await pilot.pause()
            await app.open_game(NavigationIntent.for_game(1942, "The Witcher 3"))
            await pilot.pause()

            assert isinstance(app.screen, GameDetailScreen)
            assert app.navigation_stack == ["collection", "/game/1942/the-witcher-3"]

            await pilot.press("escape")
            await pilot.pause()
            assert isinstance(app.screen, CollectionScreen)

    @pytest.mark.asyncio
    async def test_out_of_range_date_added_still_lists(self) -> None:
        blob = {"5": {"id": 5, "name": "Far future", "dateAdded": "99999999999999999999"}}
        manager = CollectionManager(CollectionStore(MemoryStorage({COLLECTION_KEY: json.dumps(blob)})))
        app = GameShelfApp(AppServices(collection=manager))

        async with app.run_test() as pilot:
            await pilot.pause()

            assert isinstance(app.screen, CollectionScreen)
            assert app.screen.query_one("#collection-table", DataTable).row_count == 1
