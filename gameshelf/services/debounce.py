"""Debouncer that runs a callback once its input has been quiet for a while."""

import asyncio
from collections.abc import Callable
from typing import Any


class Debouncer:
    """Delays a callback until ``delay`` seconds pass without a new trigger.

    Each :meth:`trigger` call replaces the pending arguments and restarts the
    window. Only the arguments of the last trigger reach the callback. Must be
    used from within a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[..., Any]) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        """Schedule the callback with ``args``, resetting any pending window."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, args)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple[Any, ...]) -> None:
        self._handle = None
        self._callback(*args)
