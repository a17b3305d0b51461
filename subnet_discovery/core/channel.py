"""
Result channel shared between sweep tasks and the reconciliation sink.

Many worker threads publish into the channel; one consumer iterates it. The
channel is closed once, after the last publish, and iteration ends when the
consumer reaches the close marker.
"""

import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    """Raised when publishing to, or closing, an already closed channel."""


class ResultChannel(Generic[T]):
    """
    Unbounded multiple-producer / single-consumer channel.

    Attributes:
        published: Number of items published so far
    """

    def __init__(self):
        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self.published = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, item: T) -> None:
        """
        Put one item on the channel.

        Raises:
            ChannelClosedError: If the channel was already closed
            ValueError: If ``item`` is None
        """
        if item is None:
            raise ValueError("None cannot be published on a result channel")
        with self._lock:
            if self._closed:
                raise ChannelClosedError("publish on closed channel")
            self.published += 1
            self._queue.put(item)

    def close(self) -> None:
        """
        Mark the end of the stream.

        Raises:
            ChannelClosedError: If the channel was already closed
        """
        with self._lock:
            if self._closed:
                raise ChannelClosedError("channel already closed")
            self._closed = True
            self._queue.put(_CLOSED)

    def receive(self, timeout: Optional[float] = None) -> Optional[T]:
        """
        Block until the next item arrives.

        Returns:
            The next item, or None once the channel is closed and drained

        Raises:
            queue.Empty: If ``timeout`` elapses with nothing to read
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker in place so later reads also see the close
            self._queue.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.receive()
            if item is None:
                return
            yield item
