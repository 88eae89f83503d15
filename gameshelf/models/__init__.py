"""Data models for the game shelf application."""

from .collection import CollectionEntry, LegacyEntry, SortOrder, StoredEntry, coerce_timestamp, parse_stored_entry
from .config import AppConfig
from .game import Game, ImageRef, Platform, SearchResult

__all__ = [
    "AppConfig",
    "CollectionEntry",
    "Game",
    "ImageRef",
    "LegacyEntry",
    "Platform",
    "SearchResult",
    "SortOrder",
    "StoredEntry",
    "coerce_timestamp",
    "parse_stored_entry",
]
