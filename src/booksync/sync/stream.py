"""Closable streams and completion barriers for the sync pipeline.

This module provides:
- Stream: Thread-safe FIFO with an explicit, single close
- StreamClosedError: Raised on writes after close and reads past the end
- CompletionBarrier: Counted wait for a group of producer/consumer threads

A Stream may have many writers and many readers. Readers iterate until the
stream is closed and drained. Closing is a one-shot operation: a second
close() raises, as does any put() after close, so a broken shutdown order
fails loudly instead of losing items.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StreamClosedError(Exception):
    """Raised when writing to a closed stream or reading an exhausted one."""


class Stream(Generic[T]):
    """Thread-safe FIFO stream with close semantics.

    Usage:
        files: Stream[Path] = Stream(maxsize=128, name="files")

        # producers
        files.put(path)

        # the single closer, once every producer is done
        files.close()

        # consumers
        for path in files:
            ...
    """

    def __init__(self, maxsize: int = 0, name: str = "stream") -> None:
        """Initialize the stream.

        Args:
            maxsize: Maximum number of buffered items (0 = unbounded).
            name: Name used in log messages.
        """
        self._maxsize = maxsize
        self._name = name
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._closed = False

    @property
    def name(self) -> str:
        """Get the stream name."""
        return self._name

    @property
    def closed(self) -> bool:
        """Check if the stream has been closed."""
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> None:
        """Append an item, blocking while the stream is full.

        Raises:
            StreamClosedError: If the stream is (or becomes) closed.
        """
        with self._not_full:
            while True:
                if self._closed:
                    raise StreamClosedError(f"cannot write to closed stream {self._name!r}")
                if self._maxsize <= 0 or len(self._items) < self._maxsize:
                    break
                self._not_full.wait()
            self._items.append(item)
            self._not_empty.notify()

    def get(self, timeout: float | None = None) -> T:
        """Remove and return the next item.

        Blocks until an item is available or the stream is closed.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            The next item.

        Raises:
            StreamClosedError: If the stream is closed and fully drained.
            TimeoutError: If no item arrived within the timeout.
        """
        with self._not_empty:
            if not self._not_empty.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            ):
                raise TimeoutError(f"no item on stream {self._name!r} after {timeout}s")
            if not self._items:
                raise StreamClosedError(f"stream {self._name!r} is closed")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Close the stream.

        Buffered items remain readable. Blocked writers are woken and fail.

        Raises:
            StreamClosedError: If the stream was already closed.
        """
        with self._lock:
            if self._closed:
                raise StreamClosedError(f"stream {self._name!r} already closed")
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()
        logger.debug(f"Stream {self._name!r} closed")

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except StreamClosedError:
                return


class CompletionBarrier:
    """Counted wait satisfied once every registered participant is done.

    Participants must be registered with add() before they are started,
    otherwise wait() could return before they are counted.
    """

    def __init__(self) -> None:
        self._pending = 0
        self._cond = threading.Condition()

    @property
    def pending(self) -> int:
        """Get the number of participants not yet done."""
        with self._cond:
            return self._pending

    def add(self, count: int = 1) -> None:
        """Register participants."""
        if count < 0:
            raise ValueError("count must not be negative")
        with self._cond:
            self._pending += count

    def done(self) -> None:
        """Mark one participant as finished.

        Raises:
            ValueError: If more participants finished than were registered.
        """
        with self._cond:
            if self._pending <= 0:
                raise ValueError("done() called more times than add()")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every registered participant is done.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            True if all participants finished, False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout=timeout)
