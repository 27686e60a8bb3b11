"""
Request context

Carries cancellation and an optional deadline for a single API call. A
context is required for every request; use ``RequestContext.background()``
when the call should only be bounded by the transport timeouts.

Connections opened while a context is bound to the current thread (see
``bind_context``) register with it, so cancelling the context or passing
its deadline aborts a request that is already on the wire, including reads
from a response body that was handed back to the caller.
"""

import threading
import time
from contextlib import contextmanager
from functools import partial
from typing import Callable, Dict, Iterator, Optional

from triton_client.exceptions import TransportError


CANCELED = "context canceled"
DEADLINE_EXCEEDED = "context deadline exceeded"

_bound = threading.local()


def _noop() -> None:
    pass


class RequestContext:
    """Cancellation signal and deadline shared by one or more requests"""

    def __init__(self, deadline: Optional[float] = None) -> None:
        """
        Args:
            deadline: Absolute ``time.monotonic()`` value, or None for no deadline
        """
        self._deadline = deadline
        self._lock = threading.Lock()
        self._error: Optional[str] = None
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_token = 0
        self._timer: Optional[threading.Timer] = None

    @classmethod
    def background(cls) -> "RequestContext":
        """Context that is never cancelled and has no deadline"""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "RequestContext":
        """Context whose deadline is ``seconds`` from now"""
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._error == CANCELED

    def cancel(self) -> None:
        """Cancel the context and abort every request bound to it"""
        self._finish(CANCELED)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None without a deadline"""
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def err(self) -> Optional[str]:
        """Why the context is done, or None while it is still usable"""
        if self._error is None:
            remaining = self.remaining()
            if remaining is not None and remaining <= 0:
                self._finish(DEADLINE_EXCEEDED)
        return self._error

    def check(self) -> None:
        """
        Raise if the context can no longer be used to send a request

        Raises:
            TransportError: If cancelled or past the deadline
        """
        error = self.err()
        if error is not None:
            raise TransportError(error)

    def on_done(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run ``callback`` once, when the context is cancelled or expires

        The callback runs immediately if the context is already done.

        Returns:
            Function that unregisters the callback
        """
        with self._lock:
            if self._error is None:
                token = self._next_token
                self._next_token += 1
                self._callbacks[token] = callback
                self._arm_timer()
                return partial(self._remove_callback, token)

        callback()
        return _noop

    def _arm_timer(self) -> None:
        # Called with the lock held
        if self._deadline is None or self._timer is not None:
            return
        self._timer = threading.Timer(
            max(self.remaining(), 0.0), self._finish, args=(DEADLINE_EXCEEDED,)
        )
        self._timer.daemon = True
        self._timer.start()

    def _remove_callback(self, token: int) -> None:
        with self._lock:
            self._callbacks.pop(token, None)
            if self._callbacks or self._timer is None:
                return
            timer, self._timer = self._timer, None
        timer.cancel()

    def _finish(self, error: str) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        for callback in callbacks:
            callback()


@contextmanager
def bind_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Bind ``ctx`` to connections the current thread opens inside the block"""
    previous = getattr(_bound, "context", None)
    _bound.context = ctx
    try:
        yield ctx
    finally:
        _bound.context = previous


def current_context() -> Optional[RequestContext]:
    """Context bound to the current thread, if any"""
    return getattr(_bound, "context", None)
