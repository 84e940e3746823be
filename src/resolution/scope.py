from __future__ import annotations

import concurrent.futures
import threading
import time
from typing import Any, Callable, Optional

from .errors import LookupCancelled, LookupTimeout

# How often a blocked wait re-checks the inbound cancellation event.
POLL_INTERVAL = 0.05


class TimeoutScope:
    """
    Bounded execution window for one tool invocation.

    The scope ends at whichever comes first:
      - the parent event being set (inbound cancellation: shutdown, client gone)
      - `timeout` seconds elapsing from construction

    Every lookup of one invocation shares the same scope, so a slow first lookup
    eats into the budget of the second. Use as a context manager; leaving the
    block closes the scope and any wait still in progress gives up.
    """

    def __init__(
        self,
        timeout: float,
        parent: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout!r}")
        self.timeout = float(timeout)
        self.parent = parent
        self._clock = clock
        self.deadline = clock() + self.timeout
        self._closed = threading.Event()

    def __enter__(self) -> "TimeoutScope":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._closed.set()

    # ----------------------------
    # State
    # ----------------------------

    def remaining(self) -> float:
        return max(0.0, self.deadline - self._clock())

    @property
    def cancelled(self) -> bool:
        return self._closed.is_set() or bool(self.parent is not None and self.parent.is_set())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self, hostname: str) -> None:
        """Raise if the scope is already over; cancellation wins over expiry."""
        if self.cancelled:
            raise LookupCancelled(hostname)
        if self.expired:
            raise LookupTimeout(hostname, self.timeout)

    # ----------------------------
    # Waiting
    # ----------------------------

    def wait(self, future: "concurrent.futures.Future[Any]", hostname: str) -> Any:
        """
        Block until `future` finishes or the scope ends.

        Returns the future's result, re-raises its exception, or raises
        LookupCancelled / LookupTimeout. A future abandoned here is cancelled if
        it has not started; a running resolver call cannot be interrupted and is
        left to finish on its worker thread.
        """
        while True:
            try:
                self.check(hostname)
            except (LookupCancelled, LookupTimeout):
                future.cancel()
                raise

            done, _ = concurrent.futures.wait([future], timeout=min(POLL_INTERVAL, self.remaining()))
            if done:
                return future.result()
