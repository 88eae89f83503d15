"""IGDB metadata client.

Translates searches and detail lookups into IGDB's Apicalypse query language
and normalizes the responses into the application's game models. Access
tokens come from Twitch's client-credentials flow and are cached until shortly
before they expire.
"""

import asyncio
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

import httpx
import structlog

from ..models.config import DEFAULT_IGDB_BASE_URL, AppConfig
from ..models.game import Game, SearchResult, search_result_from_dict
from .errors import AuthenticationError, ConfigurationError, NetworkError, ValidationError, get_error_service
from .http_client import HttpClientService

log = structlog.stdlib.get_logger()

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
IMAGE_BASE_URL = "https://images.igdb.com/igdb/image/upload"

# Refresh tokens this many seconds before IGDB would reject them
TOKEN_REFRESH_MARGIN = 60

SEARCH_FIELDS = "id,name,cover.image_id,first_release_date"
DETAIL_FIELDS = (
    "id,name,summary,rating,rating_count,first_release_date,"
    "cover.image_id,screenshots.image_id,platforms.name,similar_games"
)
SIMILAR_GAMES_LIMIT = 6

T = TypeVar("T")


class ImageSize(Enum):
    """Image sizes served by the IGDB image host."""
    THUMB = "thumb"
    COVER_SMALL = "cover_small"
    COVER_BIG = "cover_big"
    SCREENSHOT_MED = "screenshot_med"
    SCREENSHOT_BIG = "screenshot_big"
    SCREENSHOT_HUGE = "screenshot_huge"
    HD = "720p"
    FULL_HD = "1080p"


def image_url(image_id: str, size: ImageSize | str = ImageSize.COVER_BIG) -> str:
    """Build the URL of a provider image.

    Raises:
        ValueError: If ``size`` is not a known image size
    """
    return f"{IMAGE_BASE_URL}/t_{ImageSize(size).value}/{image_id}.jpg"


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_search_query(query: str, limit: int) -> str:
    return f"search {_quote(query.strip())}; fields {SEARCH_FIELDS}; limit {limit};"


def build_detail_query(game_id: int) -> str:
    return f"fields {DETAIL_FIELDS}; where id = {game_id};"


def build_batch_query(game_ids: list[int], limit: int = SIMILAR_GAMES_LIMIT) -> str:
    id_list = ",".join(str(game_id) for game_id in game_ids)
    return f"fields {SEARCH_FIELDS}; where id = ({id_list}); limit {limit};"


class TokenProvider:
    """Obtains and caches IGDB bearer tokens."""

    def __init__(
        self,
        http_client: HttpClientService,
        client_id: str,
        client_secret: str,
        token_url: str = TWITCH_TOKEN_URL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client_id = client_id
        self._client_secret = client_secret
        self._http_client = http_client
        self._token_url = token_url
        self._clock = clock
        self._access_token: str | None = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    def invalidate(self) -> None:
        """Forget the cached token so the next call fetches a new one."""
        self._access_token = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        """Return a valid access token, fetching a new one when needed.

        Raises:
            ConfigurationError: If the client id or secret is missing
            AuthenticationError: If the token exchange fails
        """
        if not self.client_id or not self._client_secret:
            raise ConfigurationError(
                "IGDB API credentials are not configured",
                setting="igdb_client_id" if not self.client_id else "igdb_client_secret",
            )

        async with self._lock:
            if self._access_token and self._clock() < self._expires_at - TOKEN_REFRESH_MARGIN:
                return self._access_token

            log.info("IGDB token is missing or expired, requesting a new one")
            self._access_token, self._expires_at = await self._request_token()
            log.info("Obtained new IGDB token")
            return self._access_token

    async def _request_token(self) -> tuple[str, float]:
        try:
            response = await self._http_client.post(
                self._token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                },
            )
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(
                f"Failed to get IGDB access token: {e.response.status_code}",
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.RequestError as e:
            raise AuthenticationError("Failed to reach the token endpoint", original_error=e) from e

        try:
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Token endpoint returned an unexpected response", original_error=e) from e

        if not isinstance(token, str) or not token:
            raise AuthenticationError("Token endpoint returned an empty access token")

        return token, self._clock() + expires_in


class IGDBClient:
    """Async client for the IGDB games endpoint.

    Search and similar-games lookups degrade to an empty list and detail
    lookups to None when the provider cannot be reached. Missing credentials
    are raised as ConfigurationError.
    """

    def __init__(
        self,
        http_client: HttpClientService,
        client_id: str,
        client_secret: str,
        base_url: str = DEFAULT_IGDB_BASE_URL,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self._http_client = http_client
        self.base_url = base_url.rstrip("/")
        self._tokens = token_provider or TokenProvider(http_client, client_id, client_secret)

        log.info("IGDB client initialized", base_url=self.base_url, has_client_id=bool(client_id))

    @classmethod
    def from_config(cls, config: AppConfig, http_client: HttpClientService) -> "IGDBClient":
        return cls(
            http_client,
            client_id=config.igdb_client_id,
            client_secret=config.igdb_client_secret,
            base_url=config.igdb_base_url,
        )

    async def search_games(self, query: str, limit: int = 10) -> list[SearchResult]:
        """Search games by name.

        Raises:
            ConfigurationError: If credentials are missing
        """
        if not query.strip():
            return []

        try:
            rows = await self._query("/games", build_search_query(query, limit))
        except (NetworkError, AuthenticationError, ValidationError) as e:
            self._report(e, "search_games", {"query": query})
            return []

        return self._parse_rows(rows, search_result_from_dict)

    async def get_game_details(self, game_id: int) -> Game | None:
        """Fetch the full detail record for one game.

        Returns:
            The game, or None if it does not exist or cannot be fetched

        Raises:
            ConfigurationError: If credentials are missing
        """
        try:
            rows = await self._query("/games", build_detail_query(game_id))
        except (NetworkError, AuthenticationError, ValidationError) as e:
            self._report(e, "get_game_details", {"game_id": game_id})
            return None

        games = self._parse_rows(rows, Game.from_dict)
        return games[0] if games else None

    async def get_similar_games(self, game_ids: list[int]) -> list[SearchResult]:
        """Fetch reduced records for a set of games, at most six.

        Raises:
            ConfigurationError: If credentials are missing
        """
        if not game_ids:
            return []

        try:
            rows = await self._query("/games", build_batch_query(game_ids))
        except (NetworkError, AuthenticationError, ValidationError) as e:
            self._report(e, "get_similar_games", {"game_ids": game_ids})
            return []

        return self._parse_rows(rows, search_result_from_dict)

    async def _query(self, endpoint: str, body: str) -> list[dict[str, Any]]:
        """Post a query, retrying once with a fresh token if the old one was rejected."""
        url = f"{self.base_url}{endpoint}"
        log.debug("IGDB request", endpoint=endpoint, body=body)

        for attempt in range(2):
            token = await self._tokens.get_token()
            headers = {
                "Client-ID": self._tokens.client_id,
                "Authorization": f"Bearer {token}",
                "Content-Type": "text/plain",
                "Accept": "application/json",
            }
            try:
                response = await self._http_client.post(url, content=body, headers=headers)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 401:
                    if attempt > 0:
                        break
                    log.info("IGDB rejected the access token, refreshing")
                    self._tokens.invalidate()
                    continue
                raise NetworkError(
                    f"IGDB request failed: {e.response.status_code}",
                    original_error=e,
                    url=url,
                    status_code=e.response.status_code,
                ) from e
            except httpx.RequestError as e:
                raise NetworkError("Could not reach IGDB", original_error=e, url=url) from e

            try:
                payload = response.json()
            except ValueError as e:
                raise ValidationError("IGDB returned invalid JSON", field="response") from e
            if not isinstance(payload, list):
                raise ValidationError("IGDB returned an unexpected payload", field="response", value=payload)

            log.debug("IGDB response", endpoint=endpoint, count=len(payload))
            return payload

        raise AuthenticationError("IGDB rejected a freshly issued access token", status_code=401)

    @staticmethod
    def _parse_rows(rows: list[dict[str, Any]], parse: Callable[[dict[str, Any]], T]) -> list[T]:
        parsed: list[T] = []
        for row in rows:
            try:
                parsed.append(parse(row))
            except (ValueError, TypeError, KeyError) as e:
                log.warning("Skipping malformed IGDB record", error=str(e))
        return parsed

    @staticmethod
    def _report(error: Exception, operation: str, context: dict[str, Any]) -> None:
        get_error_service().handle_error(error, operation=operation, component="igdb_client", context=context)

    async def aclose(self) -> None:
        await self._http_client.close()

    async def __aenter__(self) -> "IGDBClient":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.aclose()
