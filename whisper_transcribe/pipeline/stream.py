"""
whisper_transcribe.pipeline.stream - Bounded single-producer event stream.

The producer blocks when the queue is full instead of dropping events, so
the consumer always observes the terminal event.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterator

from whisper_transcribe.pipeline.events import Event, is_terminal

DEFAULT_MAXSIZE = 100

_CLOSED = object()


class StreamClosedError(RuntimeError):
    """Raised when emitting after the terminal event or after close()."""


class EventStream:
    """Bounded FIFO of pipeline events, one producer and one consumer."""

    def __init__(self, maxsize: int = DEFAULT_MAXSIZE) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = False
        self._terminal: Event | None = None

    @property
    def terminal(self) -> Event | None:
        """The terminal event, once emitted."""
        return self._terminal

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: Event) -> None:
        """Enqueue an event, blocking while the queue is full."""
        with self._lock:
            if self._closed:
                raise StreamClosedError("event stream is closed")
            if self._terminal is not None:
                raise StreamClosedError("terminal event already emitted")
            if is_terminal(event):
                self._terminal = event
        self._queue.put(event)

    def close(self) -> None:
        """Signal end of stream to the consumer. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_CLOSED)

    def get(self, timeout: float | None = None) -> Event | None:
        """Receive the next event; None once the stream is closed.

        Raises:
            queue.Empty: If timeout elapses with nothing to receive
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # keep the sentinel so later get() calls also see end of stream
            self._queue.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> Iterator[Event]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event
