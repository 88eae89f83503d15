"""Game-related data models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImageRef:
    """Reference to a provider-hosted image (cover or screenshot)."""
    id: int
    image_id: str  # Opaque identifier used to build image URLs


@dataclass(frozen=True)
class Platform:
    """Platform a game was released on."""
    id: int
    name: str


@dataclass(frozen=True)
class SearchResult:
    """Reduced projection of a game used for search dropdowns and similar games."""
    id: int
    name: str
    cover: ImageRef | None = None
    first_release_date: int | None = None  # Epoch seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to the provider-shaped dictionary."""
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.cover is not None:
            data["cover"] = image_ref_to_dict(self.cover)
        if self.first_release_date is not None:
            data["first_release_date"] = self.first_release_date
        return data


@dataclass(frozen=True)
class Game:
    """Full game detail record."""
    id: int
    name: str
    summary: str | None = None
    rating: float | None = None  # 0-100 scale, None if not available
    rating_count: int | None = None
    first_release_date: int | None = None  # Epoch seconds
    cover: ImageRef | None = None
    screenshots: tuple[ImageRef, ...] = field(default_factory=tuple)
    platforms: tuple[Platform, ...] = field(default_factory=tuple)
    similar_games: tuple[int, ...] = field(default_factory=tuple)

    @property
    def platform_names(self) -> list[str]:
        return [platform.name for platform in self.platforms]

    def to_search_result(self) -> SearchResult:
        """Project the detail record down to a search result."""
        return SearchResult(
            id=self.id,
            name=self.name,
            cover=self.cover,
            first_release_date=self.first_release_date,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the provider-shaped dictionary, omitting absent fields."""
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.summary is not None:
            data["summary"] = self.summary
        if self.rating is not None:
            data["rating"] = self.rating
        if self.rating_count is not None:
            data["rating_count"] = self.rating_count
        if self.first_release_date is not None:
            data["first_release_date"] = self.first_release_date
        if self.cover is not None:
            data["cover"] = image_ref_to_dict(self.cover)
        data["screenshots"] = [image_ref_to_dict(shot) for shot in self.screenshots]
        data["platforms"] = [{"id": p.id, "name": p.name} for p in self.platforms]
        data["similar_games"] = list(self.similar_games)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Game":
        """Build a Game from a provider-shaped dictionary.

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        game_id, name = _require_identity(data)

        return cls(
            id=game_id,
            name=name,
            summary=_optional_str(data.get("summary")),
            rating=_optional_float(data.get("rating")),
            rating_count=_optional_int(data.get("rating_count")),
            first_release_date=_optional_int(data.get("first_release_date")),
            cover=image_ref_from_dict(data.get("cover")),
            screenshots=tuple(
                ref for ref in (image_ref_from_dict(s) for s in _as_list(data.get("screenshots")))
                if ref is not None
            ),
            platforms=tuple(
                Platform(id=int(p.get("id", 0)), name=str(p["name"]))
                for p in _as_list(data.get("platforms"))
                if isinstance(p, dict) and p.get("name")
            ),
            similar_games=tuple(
                int(similar) for similar in _as_list(data.get("similar_games"))
                if isinstance(similar, int) and not isinstance(similar, bool)
            ),
        )


def search_result_from_dict(data: dict[str, Any]) -> SearchResult:
    """Build a SearchResult from a provider-shaped dictionary.

    Raises:
        ValueError: If required fields are missing or have the wrong type
    """
    game_id, name = _require_identity(data)
    return SearchResult(
        id=game_id,
        name=name,
        cover=image_ref_from_dict(data.get("cover")),
        first_release_date=_optional_int(data.get("first_release_date")),
    )


def image_ref_to_dict(ref: ImageRef) -> dict[str, Any]:
    return {"id": ref.id, "image_id": ref.image_id}


def image_ref_from_dict(data: Any) -> ImageRef | None:
    """Parse an expanded image object; anything without an image_id is ignored."""
    if not isinstance(data, dict):
        return None
    image_id = data.get("image_id")
    if not isinstance(image_id, str) or not image_id:
        return None
    raw_id = data.get("id", 0)
    return ImageRef(id=raw_id if isinstance(raw_id, int) else 0, image_id=image_id)


def _require_identity(data: dict[str, Any]) -> tuple[int, str]:
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    game_id = data.get("id")
    if not isinstance(game_id, int) or isinstance(game_id, bool):
        raise ValueError(f"Game id must be an integer, got {game_id!r}")
    name = data.get("name")
    if not isinstance(name, str):
        raise ValueError(f"Game {game_id} has no name")
    return game_id, name


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _optional_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
