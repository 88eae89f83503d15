"""Collection screen: the saved games, sortable by date added or release date."""

from datetime import datetime, timezone
from typing import ClassVar, override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import DataTable, Static

import structlog

from gameshelf.models.collection import CollectionEntry, SortOrder
from gameshelf.services.navigation import NavigationIntent

from .base import BaseScreen

log = structlog.stdlib.get_logger()

SORT_LABELS = {
    SortOrder.DATE_ADDED: "Date added",
    SortOrder.RELEASE_DATE: "Release date",
}


def format_release_date(timestamp: int | None) -> str:
    """Format a release timestamp (seconds since the epoch) as a year-month-day date."""
    if timestamp is None:
        return "TBA"
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
    except (OverflowError, OSError, ValueError):
        return "TBA"


def rating_label(rating: float | None) -> str:
    if rating is None:
        return "-"
    return f"{round(rating)}/100"


def get_entry_display_row(entry: CollectionEntry) -> tuple[str, str, str, str]:
    """Columns shown for one collection entry: name, release, rating, date added."""
    return (
        entry.name[:50],
        format_release_date(entry.first_release_date),
        rating_label(entry.game.rating),
        format_date_added(entry.date_added_ms),
    )


def format_date_added(timestamp_ms: int) -> str:
    """Format a millisecond timestamp; values outside the calendar show as "-"."""
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return "-"


def next_sort_order(current: SortOrder) -> SortOrder:
    if current is SortOrder.DATE_ADDED:
        return SortOrder.RELEASE_DATE
    return SortOrder.DATE_ADDED


class CollectionScreen(BaseScreen):
    """Lists the collection and opens detail pages for selected rows."""

    SCREEN_TITLE: ClassVar[str] = "My Collection"
    SCREEN_NAME: ClassVar[str] = "collection"

    CSS: ClassVar[str] = """
    #collection-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }

    #collection-stats {
        color: $text-muted;
        margin-bottom: 1;
    }

    #collection-table {
        height: 1fr;
    }

    #collection-empty {
        text-align: center;
        color: $text-muted;
        padding: 2;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Back", show=True),
        Binding("s", "toggle_sort", "Sort", show=True),
        Binding("d", "remove_selected", "Remove", show=True),
        Binding("r", "refresh", "Refresh", show=True),
    ]

    _sort_order: SortOrder
    _entries: list[CollectionEntry]

    def __init__(self) -> None:
        super().__init__()
        self._sort_order = SortOrder.DATE_ADDED
        self._entries = []

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @override
    def compose(self) -> ComposeResult:
        with Container(id="collection-container"):
            yield self.create_title_widget()
            yield Static("", id="collection-stats")
            yield DataTable(id="collection-table")
            yield Static("Your collection is empty. Press '/' to search for games.", id="collection-empty")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        table = self.query_one("#collection-table", DataTable)
        table.add_columns("Name", "Released", "Rating", "Added")
        table.cursor_type = "row"
        self._load_entries()

    @override
    def on_screen_resume(self) -> None:
        super().on_screen_resume()
        self._load_entries()

    def _load_entries(self) -> None:
        manager = self.collection
        self._entries = manager.get_sorted_collection(self._sort_order) if manager else []
        self._refresh_table()
        log.debug("Collection view refreshed", count=len(self._entries), sort=self._sort_order.value)

    def _refresh_table(self) -> None:
        table = self.query_one("#collection-table", DataTable)
        table.clear()
        for entry in self._entries:
            table.add_row(*get_entry_display_row(entry), key=str(entry.id))

        self.query_one("#collection-stats", Static).update(
            f"{len(self._entries)} games, sorted by {SORT_LABELS[self._sort_order].lower()}"
        )
        self.query_one("#collection-empty", Static).display = not self._entries
        table.display = bool(self._entries)

    def _selected_entry(self) -> CollectionEntry | None:
        table = self.query_one("#collection-table", DataTable)
        if not self._entries or table.cursor_row < 0 or table.cursor_row >= len(self._entries):
            return None
        return self._entries[table.cursor_row]

    async def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key.value is None:
            return
        entry = self.collection.get_entry(int(event.row_key.value)) if self.collection else None
        if entry is None:
            log.warning("Selected entry not found", row_key=event.row_key.value)
            return
        await self.shelf_app.open_game(NavigationIntent.for_game(entry.id, entry.name))

    def action_toggle_sort(self) -> None:
        self._sort_order = next_sort_order(self._sort_order)
        self._load_entries()
        self.notify_success(f"Sorted by {SORT_LABELS[self._sort_order].lower()}")

    def action_remove_selected(self) -> None:
        entry = self._selected_entry()
        if entry is None or self.collection is None:
            self.notify_warning("No game selected")
            return
        self.collection.remove_game(entry.id)
        self._load_entries()
        self.notify_success(f"Removed '{entry.name}' from your collection")

    def action_refresh(self) -> None:
        self._load_entries()
