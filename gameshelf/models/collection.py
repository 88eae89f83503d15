"""Collection data models: stored entries, legacy records and sort orders."""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .game import Game

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

DateAdded = int | float | str


class SortOrder(Enum):
    """Orderings offered for the collection view."""
    DATE_ADDED = "dateAdded"
    RELEASE_DATE = "releaseDate"


@dataclass(frozen=True)
class CollectionEntry:
    """A game in the collection together with the time it was added."""
    game: Game
    date_added: DateAdded  # Epoch milliseconds; legacy data may hold a numeric string

    @property
    def id(self) -> int:
        return self.game.id

    @property
    def name(self) -> str:
        return self.game.name

    @property
    def first_release_date(self) -> int | None:
        return self.game.first_release_date

    @property
    def date_added_ms(self) -> int:
        """The date-added value coerced to integer milliseconds."""
        return coerce_timestamp(self.date_added)

    def to_dict(self) -> dict[str, Any]:
        data = self.game.to_dict()
        data["dateAdded"] = self.date_added
        return data


@dataclass(frozen=True)
class LegacyEntry:
    """A stored record written before date-added stamps existed."""
    game: Game

    def migrate(self, date_added: int) -> CollectionEntry:
        return CollectionEntry(game=self.game, date_added=date_added)


StoredEntry = LegacyEntry | CollectionEntry


def parse_stored_entry(data: Any) -> StoredEntry:
    """Parse one stored record into a legacy or migrated entry.

    A record is legacy when its ``dateAdded`` is absent, null, zero, NaN, empty or
    of a type that cannot hold a timestamp.

    Raises:
        ValueError: If the record is not a game object
    """
    game = Game.from_dict(data)
    raw = data.get("dateAdded")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)) or not raw:
        return LegacyEntry(game=game)
    if isinstance(raw, float) and math.isnan(raw):
        return LegacyEntry(game=game)
    return CollectionEntry(game=game, date_added=raw)


def coerce_timestamp(value: Any) -> int:
    """Coerce a stored timestamp to an integer, treating anything non-numeric as 0.

    Strings are read like JavaScript's ``parseInt``: the leading integer part
    counts, trailing garbage is ignored.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0
