"""Collection manager: the in-memory game collection and its persistence."""

import time
from collections.abc import Callable
from enum import Enum

import structlog

from ..models.collection import CollectionEntry, LegacyEntry, SortOrder, StoredEntry
from ..models.game import Game
from .storage import CollectionStore

log = structlog.stdlib.get_logger()

# Spacing between synthetic date-added stamps given to legacy entries
MIGRATION_STEP_MS = 1000


class CollectionState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


def current_time_ms() -> int:
    return int(time.time() * 1000)


class CollectionManager:
    """Owns the user's collection and keeps storage in step with it.

    The manager is the only writer of the stored collection. Every mutation
    updates the in-memory mapping first and then persists the full snapshot.
    Until :meth:`activate` has run, queries return empty results and
    mutations are ignored.
    """

    def __init__(
        self,
        store: CollectionStore,
        clock: Callable[[], int] = current_time_ms,
    ) -> None:
        """Initialize the collection manager.

        Args:
            store: Store adapter the collection is loaded from and saved to
            clock: Returns the current time in epoch milliseconds
        """
        self._store = store
        self._clock = clock
        self._collection: dict[int, CollectionEntry] = {}
        self._state = CollectionState.UNINITIALIZED

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is CollectionState.READY

    def activate(self) -> None:
        """Load and migrate the stored collection. Only the first call has any effect."""
        if self._state is not CollectionState.UNINITIALIZED:
            return

        self._state = CollectionState.LOADING
        stored = self._store.load()
        collection, migrated = self._migrate(stored)

        if migrated:
            log.info("Migrated legacy collection entries", migrated=migrated, total=len(collection))
            self._store.save(collection)

        self._collection = collection
        self._state = CollectionState.READY
        log.info("Collection ready", count=len(collection))

    def _migrate(self, stored: dict[int, StoredEntry]) -> tuple[dict[int, CollectionEntry], int]:
        """Stamp legacy entries with past timestamps that follow their stored order."""
        now = self._clock()
        total = len(stored)
        collection: dict[int, CollectionEntry] = {}
        migrated = 0

        for index, (game_id, entry) in enumerate(stored.items()):
            if isinstance(entry, LegacyEntry):
                collection[game_id] = entry.migrate(now - (total - index) * MIGRATION_STEP_MS)
                migrated += 1
            else:
                collection[game_id] = entry

        return collection, migrated

    def add_game(self, game: Game) -> None:
        """Insert or overwrite a game, stamping it with the current time."""
        if not self.is_ready:
            return

        # Re-inserting moves the game to the end of the stored order
        self._collection.pop(game.id, None)
        self._collection[game.id] = CollectionEntry(game=game, date_added=self._clock())
        self._store.save(self._collection)
        log.info("Game added to collection", game_id=game.id, name=game.name)

    def remove_game(self, game_id: int) -> None:
        if not self.is_ready:
            return

        if self._collection.pop(game_id, None) is None:
            log.debug("Game not in collection, nothing to remove", game_id=game_id)
        else:
            log.info("Game removed from collection", game_id=game_id)
        self._store.save(self._collection)

    def toggle_game(self, game: Game) -> bool:
        """Add the game if absent, remove it if present.

        Returns:
            Whether the game is in the collection afterwards
        """
        if self.is_in_collection(game.id):
            self.remove_game(game.id)
        else:
            self.add_game(game)
        return self.is_in_collection(game.id)

    def is_in_collection(self, game_id: int) -> bool:
        if not self.is_ready:
            return False
        return game_id in self._collection

    def get_entry(self, game_id: int) -> CollectionEntry | None:
        if not self.is_ready:
            return None
        return self._collection.get(game_id)

    def get_collection_array(self) -> list[CollectionEntry]:
        if not self.is_ready:
            return []
        return list(self._collection.values())

    def get_collection_count(self) -> int:
        if not self.is_ready:
            return 0
        return len(self._collection)

    def get_sorted_collection(
        self,
        sort_by: SortOrder | str = SortOrder.DATE_ADDED,
    ) -> list[CollectionEntry]:
        """Return the collection in the requested order.

        ``releaseDate`` puts the newest release first, with undated games last.
        ``dateAdded`` puts the oldest addition first. Both sorts are stable.

        Raises:
            ValueError: If ``sort_by`` is not a known sort order
        """
        order = SortOrder(sort_by)
        entries = self.get_collection_array()

        if order is SortOrder.RELEASE_DATE:
            return sorted(entries, key=lambda entry: entry.first_release_date or 0, reverse=True)
        return sorted(entries, key=lambda entry: entry.date_added_ms)
