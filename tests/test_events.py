"""Tests for pipeline events and the bounded event stream."""

from __future__ import annotations

import queue
import threading
from pathlib import Path

import pytest

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.exceptions import PipelineCancelled
from whisper_transcribe.pipeline.events import (
    CompletedEvent,
    ErrorEvent,
    EventKind,
    MetadataEvent,
    ProgressEvent,
    Stage,
    TranscriptChunkEvent,
    is_terminal,
)
from whisper_transcribe.pipeline.stream import EventStream, StreamClosedError
from whisper_transcribe.segments import Stats

COMPLETED = CompletedEvent(Path("out.md"), Stats("1:00", 10, "base"))


class TestEvents:
    def test_kinds(self) -> None:
        assert MetadataEvent("t", "c", "1:00").kind is EventKind.METADATA
        assert ProgressEvent(Stage.FORMAT, 0.5, "x").kind is EventKind.PROGRESS
        assert TranscriptChunkEvent("hi", "00:00").kind is EventKind.TRANSCRIPT_CHUNK
        assert COMPLETED.kind is EventKind.COMPLETED
        assert ErrorEvent(Stage.FORMAT, RuntimeError("x")).kind is EventKind.ERROR

    def test_terminal_kinds(self) -> None:
        assert is_terminal(COMPLETED)
        assert is_terminal(ErrorEvent(Stage.METADATA, RuntimeError("boom")))
        assert not is_terminal(ProgressEvent(Stage.METADATA, 0.0, "Fetching video info..."))
        assert not is_terminal(TranscriptChunkEvent("hi", "00:00"))

    @pytest.mark.parametrize("fraction", [-0.01, 1.01, 2.0])
    def test_progress_fraction_bounds(self, fraction: float) -> None:
        with pytest.raises(ValueError):
            ProgressEvent(Stage.DOWNLOAD, fraction, "Downloading...")

    def test_error_message(self) -> None:
        assert ErrorEvent(Stage.FORMAT, OSError("disk full")).message == "disk full"
        assert ErrorEvent(Stage.FORMAT, RuntimeError()).message == "RuntimeError"
        assert ErrorEvent(Stage.TRANSCRIBE, PipelineCancelled()).message == "cancelled"

    def test_stage_values(self) -> None:
        assert [s.value for s in Stage] == [
            "metadata",
            "download",
            "transcribe",
            "format",
            "validate",
        ]


class TestEventStream:
    def test_fifo_then_end(self) -> None:
        stream = EventStream()
        first = ProgressEvent(Stage.METADATA, 0.0, "Fetching video info...")
        stream.emit(first)
        stream.emit(COMPLETED)
        stream.close()
        assert list(stream) == [first, COMPLETED]
        assert stream.get() is None
        assert stream.get() is None

    def test_terminal_recorded(self) -> None:
        stream = EventStream()
        assert stream.terminal is None
        stream.emit(COMPLETED)
        assert stream.terminal is COMPLETED

    def test_second_terminal_rejected(self) -> None:
        stream = EventStream()
        stream.emit(COMPLETED)
        with pytest.raises(StreamClosedError):
            stream.emit(ErrorEvent(Stage.VALIDATE, RuntimeError("late")))

    def test_emit_after_terminal_rejected(self) -> None:
        stream = EventStream()
        stream.emit(ErrorEvent(Stage.METADATA, RuntimeError("boom")))
        with pytest.raises(StreamClosedError):
            stream.emit(ProgressEvent(Stage.DOWNLOAD, 0.0, "Starting download..."))

    def test_emit_after_close_rejected(self) -> None:
        stream = EventStream()
        stream.close()
        assert stream.closed
        with pytest.raises(StreamClosedError):
            stream.emit(COMPLETED)

    def test_close_idempotent(self) -> None:
        stream = EventStream(maxsize=1)
        stream.close()
        stream.close()
        assert list(stream) == []

    def test_get_timeout(self) -> None:
        with pytest.raises(queue.Empty):
            EventStream().get(timeout=0.01)

    def test_invalid_maxsize(self) -> None:
        with pytest.raises(ValueError):
            EventStream(maxsize=0)

    def test_producer_blocks_when_full(self) -> None:
        stream = EventStream(maxsize=1)
        stream.emit(TranscriptChunkEvent("one", "00:00"))
        emitted = threading.Event()

        def produce() -> None:
            stream.emit(TranscriptChunkEvent("two", "00:05"))
            emitted.set()

        producer = threading.Thread(target=produce)
        producer.start()
        assert not emitted.wait(0.1)

        assert stream.get().text == "one"
        assert emitted.wait(2)
        assert stream.get().text == "two"
        producer.join()


class TestCancelToken:
    def test_initially_clear(self) -> None:
        token = CancelToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel(self) -> None:
        token = CancelToken()
        token.cancel()
        assert token.cancelled
        assert token.wait(0)
        with pytest.raises(PipelineCancelled):
            token.raise_if_cancelled()

    def test_cancel_from_other_thread(self) -> None:
        token = CancelToken()
        threading.Timer(0.05, token.cancel).start()
        assert token.wait(2)
