"""
Cancellation tokens for streaming sessions.

A token is cancelled at most once; every still-streaming session bound to it
is forced into the error state with the token's cause and message.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable

from .errors import ErrorCause

CancelCallback = Callable[[ErrorCause, str], None]


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self._callbacks: list[CancelCallback] = []
        self.cause: ErrorCause | None = None
        self.message: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """
        Run `callback(cause, message)` on cancellation.

        If the token is already cancelled the callback runs immediately.
        Returns a function that deregisters the callback.
        """
        if self.cancelled:
            callback(self.cause or ErrorCause.CANCELLED, self.message or "cancelled")
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def cancel(self, message: str = "cancelled", cause: ErrorCause = ErrorCause.CANCELLED) -> bool:
        """Cancel the token. Returns False if it was already cancelled."""
        if self.cancelled:
            return False
        self.cause = ErrorCause(cause)
        self.message = message
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self.cause, message)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or `timeout` elapses. Returns the cancelled state."""
        return self._event.wait(timeout)

    def cancel_after(self, seconds: float) -> asyncio.TimerHandle:
        """Schedule a timeout cancellation on the running event loop."""
        loop = asyncio.get_running_loop()
        return loop.call_later(seconds, self.cancel, f"timed out after {seconds:g}s", ErrorCause.TIMEOUT)
