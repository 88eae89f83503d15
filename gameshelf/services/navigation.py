"""Slugs and detail-page routing.

Detail pages are addressed as ``/game/{id}/{slug}``. The id is authoritative;
a stale or hand-typed slug resolves to a redirect to the canonical one.
"""

import re
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from ..models.game import Game, SearchResult

log = structlog.stdlib.get_logger()

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")

# IGDB lists up to ten related games; the detail page shows six
SIMILAR_GAMES_LIMIT = 6


def slugify(name: str) -> str:
    """Turn a game name into a URL-safe slug.

    >>> slugify("The Witcher 3: Wild Hunt")
    'the-witcher-3-wild-hunt'
    """
    return _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")


def build_game_path(game_id: int, name: str) -> str:
    return f"/game/{game_id}/{slugify(name)}"


@dataclass(frozen=True)
class NavigationIntent:
    """Request to open the detail page of a game."""
    game_id: int
    slug: str

    @property
    def path(self) -> str:
        return f"/game/{self.game_id}/{self.slug}"

    @classmethod
    def for_game(cls, game_id: int, name: str) -> "NavigationIntent":
        return cls(game_id=game_id, slug=slugify(name))


@dataclass(frozen=True)
class DetailPage:
    """A resolved detail page."""
    game: Game
    similar_games: list[SearchResult] = field(default_factory=list)


@dataclass(frozen=True)
class Redirect:
    """The slug did not match; navigate to the canonical location instead."""
    intent: NavigationIntent

    @property
    def path(self) -> str:
        return self.intent.path


@dataclass(frozen=True)
class NotFound:
    """No game exists for the requested id."""
    requested_id: str


DetailRoute = DetailPage | Redirect | NotFound


class GameDetailSource(Protocol):
    async def get_game_details(self, game_id: int) -> Game | None: ...

    async def get_similar_games(self, game_ids: list[int]) -> list[SearchResult]: ...


class DetailRouteResolver:
    """Resolves ``{id}/{slug}`` pairs to detail pages."""

    def __init__(self, source: GameDetailSource) -> None:
        self._source = source

    async def resolve(self, id_text: str, slug: str) -> DetailRoute:
        """Resolve a detail route.

        Args:
            id_text: The id segment as it appeared in the address
            slug: The slug segment as it appeared in the address

        Returns:
            NotFound for a malformed or unknown id, Redirect when the slug is
            not canonical, otherwise the DetailPage with its similar games
        """
        try:
            game_id = int(id_text)
        except (TypeError, ValueError):
            log.info("Malformed game id in route", id_text=id_text)
            return NotFound(requested_id=str(id_text))

        game = await self._source.get_game_details(game_id)
        if game is None:
            log.info("Game not found", game_id=game_id)
            return NotFound(requested_id=str(id_text))

        canonical = slugify(game.name)
        if slug != canonical:
            log.info("Redirecting to canonical slug", game_id=game_id, slug=slug, canonical=canonical)
            return Redirect(NavigationIntent(game_id=game_id, slug=canonical))

        similar: list[SearchResult] = []
        if game.similar_games:
            similar = await self._source.get_similar_games(list(game.similar_games[:SIMILAR_GAMES_LIMIT]))

        return DetailPage(game=game, similar_games=similar)

    async def resolve_path(self, path: str) -> DetailRoute:
        """Resolve a ``/game/{id}/{slug}`` path; a missing slug counts as a wrong one."""
        parts = [part for part in path.split("/") if part]
        if len(parts) not in (2, 3) or parts[0] != "game":
            return NotFound(requested_id=path)
        return await self.resolve(parts[1], parts[2] if len(parts) == 3 else "")
