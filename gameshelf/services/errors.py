"""Error types and centralized error handling.

Every failure the application reports to the user is an ``AppError``. Each
subclass fixes a category, a severity and the actions offered to the user;
``ErrorHandlingService`` turns arbitrary exceptions into one of them, logs it
and keeps a short history.
"""

import json
import time
from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

import httpx
import structlog

log = structlog.stdlib.get_logger()


class ErrorCategory(Enum):
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    STORAGE = "storage"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class UserFriendlyError:
    """What the UI shows for a failure."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


HTTP_ERROR_MESSAGES: dict[int, str] = {
    400: "The game database rejected the query.",
    401: "Authentication with the game database failed.",
    403: "Access to the game database was denied.",
    404: "The requested resource was not found.",
    429: "Too many requests. Please wait before trying again.",
    500: "The game database encountered an error. Please try again later.",
    502: "The game database is temporarily unavailable.",
    503: "The game database is temporarily unavailable.",
    504: "The game database took too long to respond.",
}


class AppError(Exception):
    """Base class for application errors.

    Subclasses override the class-level defaults; ``details`` become the
    technical details line by line.
    """

    category: ClassVar[ErrorCategory] = ErrorCategory.UNEXPECTED
    severity: ClassVar[ErrorSeverity] = ErrorSeverity.ERROR
    recoverable: ClassVar[bool] = True
    default_actions: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        message: str,
        suggested_actions: list[str] | None = None,
        original_error: Exception | None = None,
        **details: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggested_actions = suggested_actions if suggested_actions is not None else list(self.default_actions)
        self.original_error = original_error
        self.details = {key: value for key, value in details.items() if value is not None}

    @property
    def technical_details(self) -> str | None:
        lines = [f"{key.replace('_', ' ').capitalize()}: {value}" for key, value in self.details.items()]
        if self.original_error is not None:
            lines.append(f"{type(self.original_error).__name__}: {self.original_error}")
        return "\n".join(lines) or None

    def to_user_friendly(self) -> UserFriendlyError:
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=list(self.suggested_actions),
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class NetworkError(AppError):
    """Transport failure or non-2xx response from IGDB."""

    category = ErrorCategory.NETWORK
    default_actions = ("Check your internet connection", "Try again in a few moments")

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            suggested_actions=self._actions_for_status(status_code),
            original_error=original_error,
            status=status_code,
            url=url,
        )
        self.url = url
        self.status_code = status_code

    def _actions_for_status(self, status_code: int | None) -> list[str]:
        if status_code == 429:
            return ["Wait a few seconds before searching again", "IGDB allows only a few requests per second"]
        if status_code is not None and status_code >= 500:
            return ["The metadata service is experiencing issues", "Try again later"]
        return list(self.default_actions)


class AuthenticationError(AppError):
    """An IGDB access token could not be obtained or was rejected."""

    category = ErrorCategory.AUTHENTICATION
    default_actions = (
        "Verify the IGDB client ID and secret",
        "Check that the Twitch application is still active",
    )

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error, status=status_code)
        self.status_code = status_code


class StorageError(AppError):
    """Reading or writing the local storage file failed."""

    category = ErrorCategory.STORAGE
    severity = ErrorSeverity.WARNING
    default_actions = (
        "Check the storage file path and permissions",
        "Changes are kept for this session only",
    )

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        actions = None
        if isinstance(original_error, PermissionError):
            actions = ["Check permissions on the storage file", "Choose a different storage location"]
        elif isinstance(original_error, OSError) and "no space" in str(original_error).lower():
            actions = ["Free up disk space", "Changes are kept for this session only"]

        super().__init__(message, suggested_actions=actions, original_error=original_error, path=path)
        self.path = path
        self.operation = operation


class ValidationError(AppError):
    """Malformed data from IGDB or the storage file."""

    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.WARNING
    default_actions = ("Review the input requirements",)

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message, field=field, value=str(value)[:100] if value is not None else None)
        self.field = field
        self.value = value


class ConfigurationError(AppError):
    """Missing credentials or an invalid setting.

    Nothing can be fetched without credentials, so this error is never
    degraded to an empty result.
    """

    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.CRITICAL
    recoverable = False
    default_actions = (
        "Set IGDB_CLIENT_ID and IGDB_CLIENT_SECRET",
        "Or add igdb_client_id / igdb_client_secret to the config file",
    )

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message, setting=setting)
        self.setting = setting


class GameNotFoundError(AppError):
    """Unknown game id."""

    category = ErrorCategory.NOT_FOUND
    severity = ErrorSeverity.WARNING
    default_actions = ("Search for the game by name instead",)

    def __init__(self, game_id: int | str) -> None:
        super().__init__(f"Game {game_id} could not be found.", game_id=game_id)
        self.game_id = game_id


def classify_exception(error: Exception, context: dict[str, Any] | None = None) -> AppError:
    """Wrap a standard exception in the matching AppError subclass."""
    if isinstance(error, AppError):
        return error

    context = context or {}
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        return NetworkError(
            HTTP_ERROR_MESSAGES.get(status_code, f"HTTP error {status_code} occurred."),
            original_error=error,
            url=str(error.request.url),
            status_code=status_code,
        )
    if isinstance(error, httpx.ConnectError):
        message = "Unable to reach the game database. Please check your internet connection."
    elif isinstance(error, httpx.TimeoutException):
        message = "The game database took too long to respond."
    elif isinstance(error, httpx.RequestError):
        message = "A network error occurred. Please check your connection."
    else:
        return _classify_local(error, context)
    return NetworkError(message, original_error=error, url=context.get("url"))


def _classify_local(error: Exception, context: dict[str, Any]) -> AppError:
    # JSONDecodeError subclasses ValueError
    if isinstance(error, json.JSONDecodeError):
        return ValidationError("Invalid JSON format. The data could not be parsed.", field="json_content")
    if isinstance(error, OSError):
        return StorageError(f"A storage error occurred: {error}", original_error=error, path=context.get("path"))
    if isinstance(error, ValueError):
        return ValidationError(str(error), field=context.get("field"), value=context.get("value"))
    if isinstance(error, TypeError):
        return ValidationError(f"Invalid data type: {error}", field=context.get("field"))
    return AppError("An unexpected error occurred. Please try again.", original_error=error)


class ErrorHandlingService:
    """Classifies, logs and remembers errors on behalf of the UI and services."""

    def __init__(self, max_history_size: int = 100) -> None:
        self._history: deque[tuple[float, AppError]] = deque(maxlen=max_history_size)
        log.info("Error handling service initialized")

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Classify and log an error.

        Args:
            error: The exception that occurred
            operation: What was being done, e.g. "search"
            component: Where it happened, e.g. "igdb_client"
            context: Extra values such as "url" or "path"

        Returns:
            User-facing representation of the error
        """
        app_error = classify_exception(error, context)

        log_method = log.warning if app_error.severity is ErrorSeverity.WARNING else log.error
        log_method(
            "Error occurred",
            error_message=app_error.message,
            category=app_error.category.value,
            severity=app_error.severity.value,
            operation=operation,
            component=component,
            technical_details=app_error.technical_details,
            recoverable=app_error.recoverable,
            context=context,
        )

        self._history.append((time.time(), app_error))
        return app_error.to_user_friendly()

    def get_recent_errors(self, count: int = 10) -> list[AppError]:
        """Up to ``count`` most recent errors, oldest first."""
        return [error for _, error in list(self._history)[-count:]]

    def get_error_count_by_category(self) -> dict[ErrorCategory, int]:
        return dict(Counter(error.category for _, error in self._history))

    def create_user_message(self, error: UserFriendlyError, include_suggestions: bool = True) -> str:
        if not include_suggestions or not error.suggested_actions:
            return error.message
        bullets = "\n".join(f"  • {action}" for action in error.suggested_actions[:3])
        return f"{error.message}\n\nSuggested actions:\n{bullets}"


_error_service: ErrorHandlingService | None = None


def get_error_service() -> ErrorHandlingService:
    """Get the global error handling service instance."""
    global _error_service
    if _error_service is None:
        _error_service = ErrorHandlingService()
    return _error_service


def handle_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> UserFriendlyError:
    return get_error_service().handle_error(error, operation, component, context)
