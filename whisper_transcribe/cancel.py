"""
whisper_transcribe.cancel - Cooperative cancellation token.

A single token is created per run and passed by reference into every
collaborator call. Collaborators check it at each I/O suspension point.
"""

from __future__ import annotations

import threading

from whisper_transcribe.exceptions import PipelineCancelled


class CancelToken:
    """Thread-safe, one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout; return True if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelled()
