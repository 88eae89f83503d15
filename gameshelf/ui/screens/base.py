"""Shared screen behaviour: back navigation, notifications and error display."""

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding
from textual.notifications import SeverityLevel
from textual.screen import Screen
from textual.widgets import Static

import structlog

from gameshelf.services.collection import CollectionManager
from gameshelf.services.errors import (
    ErrorSeverity,
    UserFriendlyError,
    get_error_service,
    handle_error,
)

if TYPE_CHECKING:
    from gameshelf.ui.app import GameShelfApp

log = structlog.stdlib.get_logger()


class BaseScreen(Screen[None]):
    """Base class for every game shelf screen.

    Gives subclasses access to the owning GameShelfApp and its collection,
    routes escape to the app's back navigation and turns exceptions into
    notifications through the error handling service.
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Back", show=True),
    ]

    SCREEN_TITLE: ClassVar[str] = "Screen"
    SCREEN_NAME: ClassVar[str] = "base"

    _is_active: bool

    def __init__(self, name: str | None = None) -> None:
        super().__init__(name=name or self.SCREEN_NAME)
        self._is_active = False

    @property
    def shelf_app(self) -> "GameShelfApp":
        """The owning application.

        Raises:
            RuntimeError: If the screen is not attached to a GameShelfApp
        """
        from gameshelf.ui.app import GameShelfApp

        if isinstance(self.app, GameShelfApp):
            return self.app
        raise RuntimeError("Screen is not attached to a GameShelfApp")

    @property
    def collection(self) -> CollectionManager | None:
        return self.shelf_app.collection

    @property
    def screen_is_active(self) -> bool:
        return self._is_active

    async def on_mount(self) -> None:
        log.info("Screen mounted", screen=self.SCREEN_NAME, title=self.SCREEN_TITLE)
        self._is_active = True

    async def on_unmount(self) -> None:
        log.info("Screen unmounted", screen=self.SCREEN_NAME)
        self._is_active = False

    def on_screen_resume(self) -> None:
        """Called when this screen is shown again; subclasses refresh here."""
        log.debug("Screen resumed", screen=self.SCREEN_NAME)
        self._is_active = True

    def on_screen_suspend(self) -> None:
        log.debug("Screen suspended", screen=self.SCREEN_NAME)
        self._is_active = False

    async def action_go_back(self) -> None:
        await self.shelf_app.action_go_back()

    def create_title_widget(self, title: str | None = None) -> Static:
        return Static(title or self.SCREEN_TITLE, classes="title")

    def notify_success(self, message: str) -> None:
        self._notify(message, "information")

    def notify_warning(self, message: str) -> None:
        self._notify(message, "warning")

    def _notify(self, message: str, severity: SeverityLevel) -> None:
        self.notify(message, severity=severity)
        log_method = {"error": log.error, "warning": log.warning}.get(severity, log.info)
        log_method("User notification", message=message, screen=self.SCREEN_NAME)

    def handle_exception(
        self,
        error: Exception,
        operation: str,
        context: dict[str, str | int | float | bool] | None = None,
    ) -> UserFriendlyError:
        """Log ``error`` through the error service and notify the user.

        Warnings (not found, storage trouble) get a warning toast; everything
        else is shown as an error.
        """
        user_error = handle_error(error, operation=operation, component=self.SCREEN_NAME, context=context)
        message = get_error_service().create_user_message(user_error, include_suggestions=False)
        self._notify(message, "warning" if user_error.severity is ErrorSeverity.WARNING else "error")
        return user_error
