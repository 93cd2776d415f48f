"""Thread-safe cooperative cancellation."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, final

if TYPE_CHECKING:
    from collections.abc import Callable

# Invoked with the token that was cancelled
type CancelCallback = Callable[[CancellationToken], None]


@final
class CancellationToken:
    """A one-shot, thread-safe cancellation flag.

    Once cancelled a token stays cancelled. Callbacks registered with
    ``add_callback`` run exactly once, on the thread that cancels (or
    immediately, if the token is already cancelled).

    Example:
        >>> token = CancellationToken()
        >>> combined = CancellationToken.any(token, CancellationToken())
        >>> token.cancel()
        >>> combined.cancelled
        True
    """

    __slots__ = ("_callbacks", "_event", "_grace_ms", "_links", "_lock")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[CancellationToken], None]] = []
        self._grace_ms: int | None = None
        # (source token, callback) pairs registered by any()
        self._links: list[tuple[CancellationToken, CancelCallback]] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    @property
    def grace_ms(self) -> int | None:
        """Grace period requested with the cancellation, if any."""
        return self._grace_ms

    def cancel(self, *, grace_ms: int | None = None) -> None:
        """Request cancellation.

        Args:
            grace_ms: Optional override of the terminate-to-kill grace period
                for processes stopped because of this cancellation.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._grace_ms = grace_ms
            self._event.set()
            callbacks = self._callbacks
            self._callbacks = []

        for callback in callbacks:
            callback(self)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout seconds pass; return cancelled."""
        return self._event.wait(timeout)

    def add_callback(self, callback: CancelCallback) -> None:
        """Run callback when the token is cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def remove_callback(self, callback: CancelCallback) -> bool:
        """Unregister a callback that has not run yet.

        Returns:
            True if the callback was registered and is now removed.
        """
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
        return True

    @classmethod
    def any(cls, *tokens: CancellationToken | None) -> CancellationToken:
        """Create a token cancelled as soon as any of tokens is cancelled.

        ``None`` entries are ignored, so optional tokens can be passed as-is.
        Call ``detach`` on the result once it is no longer needed, so that
        long-lived source tokens do not keep it alive.
        """
        combined = cls()

        def propagate(source: CancellationToken) -> None:
            combined.cancel(grace_ms=source.grace_ms)

        for token in tokens:
            if token is not None:
                combined._links.append((token, propagate))
                token.add_callback(propagate)
        return combined

    def detach(self) -> None:
        """Unregister this token from the sources it was combined from."""
        links = self._links
        self._links = []
        for token, callback in links:
            _ = token.remove_callback(callback)
