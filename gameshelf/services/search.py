"""Search-as-you-type controller.

Keystrokes are debounced into lookups, only the newest lookup may update the
visible state, and a blank query clears everything immediately.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

from ..models.game import SearchResult
from .debounce import Debouncer
from .errors import ConfigurationError, get_error_service
from .navigation import NavigationIntent

log = structlog.stdlib.get_logger()


class SearchStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    RESULTS = "results"
    EMPTY = "empty"


@dataclass(frozen=True)
class SearchState:
    """What the search box currently shows."""
    status: SearchStatus = SearchStatus.IDLE
    query: str = ""
    results: tuple[SearchResult, ...] = ()
    error: str | None = None  # Set when the lookup could not run at all

    @classmethod
    def idle(cls) -> "SearchState":
        return cls()

    @classmethod
    def loading(cls, query: str) -> "SearchState":
        return cls(status=SearchStatus.LOADING, query=query)

    @classmethod
    def found(cls, query: str, results: list[SearchResult]) -> "SearchState":
        if not results:
            return cls.empty(query)
        return cls(status=SearchStatus.RESULTS, query=query, results=tuple(results))

    @classmethod
    def empty(cls, query: str, error: str | None = None) -> "SearchState":
        return cls(status=SearchStatus.EMPTY, query=query, error=error)


class CancellationToken:
    """Marks one lookup; once cancelled its result must not be applied."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class SearchBackend(Protocol):
    async def search_games(self, query: str, limit: int = 10) -> list[SearchResult]: ...


StateListener = Callable[[SearchState], None]
NavigationListener = Callable[[NavigationIntent], None]


class SearchController:
    """Turns a stream of query strings into at most one live lookup.

    Lookups start once the input has been quiet for ``debounce`` seconds.
    Starting a lookup cancels the token of the previous one, so a slow
    response for an older query is dropped when it finally arrives.
    """

    def __init__(
        self,
        backend: SearchBackend,
        debounce: float = 0.5,
        limit: int = 10,
        on_change: StateListener | None = None,
        on_navigate: NavigationListener | None = None,
    ) -> None:
        self._backend = backend
        self.limit = limit
        self._debouncer = Debouncer(debounce, self._issue_lookup)
        self._query = ""
        self._state = SearchState.idle()
        self._token: CancellationToken | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._change_listeners: list[StateListener] = [on_change] if on_change else []
        self._navigation_listeners: list[NavigationListener] = [on_navigate] if on_navigate else []

    @property
    def query(self) -> str:
        return self._query

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def debounce(self) -> float:
        return self._debouncer.delay

    def add_change_listener(self, listener: StateListener) -> None:
        self._change_listeners.append(listener)

    def set_query(self, text: str) -> None:
        """Record a new query; blank input clears results without waiting."""
        self._query = text
        if not text.strip():
            self._reset()
            return
        self._debouncer.trigger(text)

    def clear(self) -> None:
        self._query = ""
        self._reset()

    def select_result(self, result: SearchResult) -> NavigationIntent:
        """Clear the search and announce navigation to the selected game."""
        intent = NavigationIntent.for_game(result.id, result.name)
        self.clear()
        log.info("Search result selected", game_id=result.id, path=intent.path)
        for listener in self._navigation_listeners:
            listener(intent)
        return intent

    async def aclose(self) -> None:
        """Stop pending and in-flight lookups."""
        self._reset()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _reset(self) -> None:
        self._debouncer.cancel()
        self._cancel_current()
        self._set_state(SearchState.idle())

    def _cancel_current(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def _issue_lookup(self, query: str) -> None:
        self._cancel_current()
        token = CancellationToken()
        self._token = token
        self._set_state(SearchState.loading(query))

        task = asyncio.get_running_loop().create_task(self._run_lookup(query, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_lookup(self, query: str, token: CancellationToken) -> None:
        log.debug("Search lookup started", query=query)
        try:
            results = await self._backend.search_games(query, self.limit)
        except asyncio.CancelledError:
            raise
        except ConfigurationError as e:
            if token.cancelled:
                return
            user_error = get_error_service().handle_error(e, operation="search", component="search_controller")
            self._set_state(SearchState.empty(query, error=user_error.message))
            return
        except Exception as e:
            if token.cancelled:
                return
            log.warning("Search lookup failed", query=query, error=str(e), error_type=type(e).__name__)
            self._set_state(SearchState.empty(query))
            return

        if token.cancelled:
            log.debug("Discarding stale search results", query=query)
            return

        log.debug("Search lookup finished", query=query, count=len(results))
        self._set_state(SearchState.found(query, results))

    def _set_state(self, state: SearchState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in self._change_listeners:
            listener(state)
