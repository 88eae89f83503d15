"""Tests for slugs and detail-page route resolution."""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from gameshelf.models import Game, SearchResult
from gameshelf.services.navigation import (
    SIMILAR_GAMES_LIMIT,
    DetailPage,
    DetailRouteResolver,
    NavigationIntent,
    NotFound,
    Redirect,
    build_game_path,
    slugify,
)


class FakeSource:
    """Detail source backed by dictionaries."""

    def __init__(self, games: list[Game]) -> None:
        self.games = {game.id: game for game in games}
        self.similar_requests: list[list[int]] = []

    async def get_game_details(self, game_id: int) -> Game | None:
        return self.games.get(game_id)

    async def get_similar_games(self, game_ids: list[int]) -> list[SearchResult]:
        self.similar_requests.append(game_ids)
        return [self.games[i].to_search_result() for i in game_ids if i in self.games]


WITCHER = Game(id=1942, name="The Witcher 3: Wild Hunt", similar_games=tuple(range(100, 110)))
SIMILAR = [Game(id=i, name=f"Similar {i}") for i in range(100, 110)]


class TestSlugify:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("The Witcher 3: Wild Hunt", "the-witcher-3-wild-hunt"),
            ("  DOOM  ", "doom"),
            ("Half-Life 2", "half-life-2"),
            ("Pokémon Red", "pok-mon-red"),
            ("!!!", ""),
        ],
    )
    def test_examples(self, name: str, expected: str) -> None:
        assert slugify(name) == expected

    @given(st.text(max_size=60))
    @settings(max_examples=100)
    def test_slug_is_url_safe(self, name: str) -> None:
        slug = slugify(name)
        assert all(ch.isascii() and (ch.isdigit() or ch.islower() or ch == "-") for ch in slug)
        assert not slug.startswith("-")
        assert not slug.endswith("-")
        assert "--" not in slug

    @given(st.text(max_size=60))
    @settings(max_examples=100)
    def test_slug_is_idempotent(self, name: str) -> None:
        assert slugify(slugify(name)) == slugify(name)

    def test_build_game_path(self) -> None:
        assert build_game_path(1942, "The Witcher 3: Wild Hunt") == "/game/1942/the-witcher-3-wild-hunt"
        assert NavigationIntent.for_game(1942, "The Witcher 3: Wild Hunt").path == "/game/1942/the-witcher-3-wild-hunt"


class TestDetailRouteResolver:
    @pytest.mark.asyncio
    async def test_canonical_slug_resolves_page(self) -> None:
        source = FakeSource([WITCHER, *SIMILAR])
        resolver = DetailRouteResolver(source)

        route = await resolver.resolve("1942", "the-witcher-3-wild-hunt")

        assert isinstance(route, DetailPage)
        assert route.game == WITCHER
        assert [g.id for g in route.similar_games] == list(range(100, 100 + SIMILAR_GAMES_LIMIT))
        assert source.similar_requests == [list(range(100, 106))]

    @pytest.mark.asyncio
    async def test_wrong_slug_redirects(self) -> None:
        resolver = DetailRouteResolver(FakeSource([WITCHER]))

        route = await resolver.resolve("1942", "witcher")

        assert isinstance(route, Redirect)
        assert route.path == "/game/1942/the-witcher-3-wild-hunt"

    @pytest.mark.asyncio
    async def test_redirect_target_resolves_to_page(self) -> None:
        resolver = DetailRouteResolver(FakeSource([WITCHER]))

        route = await resolver.resolve_path("/game/1942/old-name")
        assert isinstance(route, Redirect)

        final = await resolver.resolve_path(route.path)
        assert isinstance(final, DetailPage)

    @pytest.mark.asyncio
    async def test_missing_slug_redirects(self) -> None:
        resolver = DetailRouteResolver(FakeSource([WITCHER]))

        route = await resolver.resolve_path("/game/1942")

        assert isinstance(route, Redirect)
        assert route.intent == NavigationIntent(1942, "the-witcher-3-wild-hunt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("id_text", ["abc", "", "12.5"])
    async def test_malformed_id_is_not_found(self, id_text: str) -> None:
        resolver = DetailRouteResolver(FakeSource([WITCHER]))

        route = await resolver.resolve(id_text, "anything")

        assert route == NotFound(requested_id=id_text)

    @pytest.mark.asyncio
    async def test_unknown_game_is_not_found(self) -> None:
        resolver = DetailRouteResolver(FakeSource([]))

        route = await resolver.resolve("404", "missing")

        assert isinstance(route, NotFound)
        assert route.requested_id == "404"

    @pytest.mark.asyncio
    async def test_game_without_similar_games_skips_lookup(self) -> None:
        game = Game(id=1, name="Solo")
        source = FakeSource([game])

        route = await DetailRouteResolver(source).resolve("1", "solo")

        assert route == DetailPage(game=game, similar_games=[])
        assert source.similar_requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/games/1942/x", "/game", "/game/1942/a/b", "nonsense"])
    async def test_malformed_paths_are_not_found(self, path: str) -> None:
        resolver = DetailRouteResolver(FakeSource([WITCHER]))

        assert isinstance(await resolver.resolve_path(path), NotFound)

    @given(st.integers(min_value=1, max_value=10**7), st.text(min_size=1, max_size=40))
    @settings(max_examples=50)
    def test_intent_path_round_trips(self, game_id: int, name: str) -> None:
        """Navigating to an intent's path lands on the same game without a redirect."""
        game = Game(id=game_id, name=name)
        resolver = DetailRouteResolver(FakeSource([game]))

        route = asyncio.run(resolver.resolve_path(NavigationIntent.for_game(game_id, name).path))

        assert isinstance(route, DetailPage)
        assert route.game.id == game_id
