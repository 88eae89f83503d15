"""Local game collection manager backed by the IGDB metadata service."""

__version__ = "0.1.0"
