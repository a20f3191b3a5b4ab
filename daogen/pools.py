"""A token pool that bounds how many workers run at once."""

from __future__ import annotations

import threading
from typing import Optional


class Pool:
    """Hands out at most ``size`` tokens; a negative size disables the pool."""

    def __init__(self, size: int) -> None:
        self._capacity: Optional[int] = size if size >= 0 else None
        self._tokens = 0
        self._outstanding = 0
        self._cond = threading.Condition()

    def __enter__(self) -> Pool:
        self.wait()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.done()

    def wait(self) -> None:
        """Take a token, blocking while none is free."""
        if self._capacity is None:
            return
        with self._cond:
            self._outstanding += 1
            while self._tokens >= self._capacity:
                self._cond.wait()
            self._tokens += 1
            self._cond.notify_all()

    def done(self) -> None:
        """Give a token back, blocking until one has been taken."""
        if self._capacity is None:
            return
        with self._cond:
            while self._tokens == 0:
                self._cond.wait()
            self._tokens -= 1
            self._outstanding -= 1
            self._cond.notify_all()

    def num(self) -> int:
        """Number of tokens currently handed out."""
        if self._capacity is None:
            return 0
        with self._cond:
            return self._tokens

    def size(self) -> int:
        """Total number of tokens."""
        return self._capacity if self._capacity is not None else 0

    def wait_all(self) -> None:
        """Block until every token taken has been given back."""
        with self._cond:
            while self._outstanding > 0:
                self._cond.wait()

    def async_wait_all(self) -> threading.Event:
        """Return an event that is set once every token has been given back."""
        finished = threading.Event()

        def _watch() -> None:
            self.wait_all()
            finished.set()

        threading.Thread(target=_watch, daemon=True).start()
        return finished


def new_pool(size: int) -> Pool:
    return Pool(size)