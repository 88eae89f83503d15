"""Service layer: collection management, search, metadata and infrastructure."""

from .collection import CollectionManager, CollectionState
from .config import ConfigurationService, ValidationResult
from .debounce import Debouncer
from .errors import (
    AppError,
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    GameNotFoundError,
    NetworkError,
    StorageError,
    UserFriendlyError,
    ValidationError,
    classify_exception,
    get_error_service,
    handle_error,
)
from .http_client import HttpClientService
from .igdb_client import IGDBClient, ImageSize, TokenProvider, image_url
from .navigation import (
    DetailPage,
    DetailRoute,
    DetailRouteResolver,
    NavigationIntent,
    NotFound,
    Redirect,
    build_game_path,
    slugify,
)
from .search import CancellationToken, SearchController, SearchState, SearchStatus
from .storage import COLLECTION_KEY, CollectionStore, JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "AppError",
    "AuthenticationError",
    "COLLECTION_KEY",
    "CancellationToken",
    "CollectionManager",
    "CollectionState",
    "CollectionStore",
    "ConfigurationError",
    "ConfigurationService",
    "Debouncer",
    "DetailPage",
    "DetailRoute",
    "DetailRouteResolver",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "GameNotFoundError",
    "HttpClientService",
    "IGDBClient",
    "ImageSize",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NavigationIntent",
    "NetworkError",
    "NotFound",
    "Redirect",
    "SearchController",
    "SearchState",
    "SearchStatus",
    "StorageError",
    "TokenProvider",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "build_game_path",
    "classify_exception",
    "get_error_service",
    "handle_error",
    "image_url",
    "slugify",
]
