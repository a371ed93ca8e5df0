"""
whisper_transcribe.pipeline.orchestrator - Stage sequencing.

Runs metadata → download → transcribe → format → validate exactly once per
job, strictly in order, and reports everything through an EventStream.
Every run ends with exactly one CompletedEvent or ErrorEvent.
"""

from __future__ import annotations

import shutil
import tempfile
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.config import TranscriptionJob
from whisper_transcribe.exceptions import PipelineCancelled
from whisper_transcribe.extract.audio import extract_audio
from whisper_transcribe.extract.metadata import VideoMetadata, fetch_metadata
from whisper_transcribe.formatter.lint import LintResult, lint_markdown
from whisper_transcribe.formatter.markdown import write_markdown
from whisper_transcribe.logging import logger
from whisper_transcribe.pipeline.events import (
    CompletedEvent,
    ErrorEvent,
    MetadataEvent,
    ProgressEvent,
    Stage,
    TranscriptChunkEvent,
)
from whisper_transcribe.pipeline.stream import DEFAULT_MAXSIZE, EventStream
from whisper_transcribe.segments import Segment, Stats, count_words
from whisper_transcribe.transcribe.engine import transcribe
from whisper_transcribe.validation import validate_source

CHUNKS_FOR_FULL_PROGRESS = 100.0
MAX_CHUNK_PROGRESS = 0.99


@dataclass(frozen=True)
class Collaborators:
    """External tools the pipeline drives; replaceable for testing."""

    validate_source: Callable[[str], None]
    fetch_metadata: Callable[[str, CancelToken], VideoMetadata]
    extract_audio: Callable[[str, Path, Callable[[float], None], CancelToken], Path]
    transcribe: Callable[[Path, str, Callable[[Segment], None], CancelToken], list[Segment]]
    write_markdown: Callable[[VideoMetadata, Sequence[Segment], TranscriptionJob], Path]
    lint_markdown: Callable[[Path, CancelToken], LintResult]


def default_collaborators() -> Collaborators:
    return Collaborators(
        validate_source=validate_source,
        fetch_metadata=fetch_metadata,
        extract_audio=extract_audio,
        transcribe=transcribe,
        write_markdown=write_markdown,
        lint_markdown=lint_markdown,
    )


class StageFailed(Exception):
    """Internal signal carrying the failing stage out of a step."""

    def __init__(self, stage: Stage, error: BaseException):
        self.stage = stage
        self.error = error
        super().__init__(f"{stage.value}: {error}")


def chunk_progress(count: int) -> float:
    """Estimated transcribe progress after count chunks; never reaches 1."""
    return min(count / CHUNKS_FOR_FULL_PROGRESS, MAX_CHUNK_PROGRESS)


class Pipeline:
    """Orchestrates one transcription run."""

    def __init__(
        self,
        job: TranscriptionJob,
        stream: EventStream,
        cancel_token: CancelToken | None = None,
        collaborators: Collaborators | None = None,
    ) -> None:
        self.job = job
        self.stream = stream
        self.cancel_token = cancel_token or CancelToken()
        self.tools = collaborators or default_collaborators()
        self.stage = Stage.METADATA

    def cancel(self) -> None:
        self.cancel_token.cancel()

    def _progress(self, stage: Stage, fraction: float, message: str) -> None:
        self.stream.emit(ProgressEvent(stage, fraction, message))

    def _checkpoint(self, stage: Stage) -> None:
        self.stage = stage
        if self.cancel_token.cancelled:
            raise StageFailed(stage, PipelineCancelled())

    def _failed(self, stage: Stage, error: Exception) -> StageFailed:
        if self.cancel_token.cancelled and not isinstance(error, PipelineCancelled):
            logger.debug("Stage %s raised after cancel: %r", stage.value, error)
            return StageFailed(stage, PipelineCancelled())
        return StageFailed(stage, error)

    def run(self) -> None:
        """Run every stage, then close the stream."""
        work_dir = Path(tempfile.mkdtemp(prefix="whisper-transcribe-"))
        try:
            self._run_stages(work_dir)
        except StageFailed as failure:
            logger.debug("Stage %s failed: %r", failure.stage.value, failure.error)
            self.stream.emit(ErrorEvent(failure.stage, failure.error))
        except Exception as e:
            logger.exception("Unexpected error in stage %s", self.stage.value)
            if self.stream.terminal is None:
                self.stream.emit(ErrorEvent(self.stage, e))
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)
            self.stream.close()

    def _run_stages(self, work_dir: Path) -> None:
        metadata = self._fetch_metadata()
        audio_path = self._download(work_dir)
        segments = self._transcribe(audio_path)
        output_path = self._format(metadata, segments)
        self._validate(output_path)

        self.stream.emit(
            CompletedEvent(
                output_path=output_path,
                stats=Stats(
                    duration=metadata.duration,
                    word_count=count_words(segments),
                    model_name=self.job.model,
                ),
            )
        )

    def _fetch_metadata(self) -> VideoMetadata:
        stage = Stage.METADATA
        self._checkpoint(stage)
        self._progress(stage, 0.0, "Fetching video info...")
        try:
            self.tools.validate_source(self.job.source)
            metadata = self.tools.fetch_metadata(self.job.source, self.cancel_token)
        except Exception as e:
            raise self._failed(stage, e) from e

        self.stream.emit(
            MetadataEvent(
                title=metadata.title,
                channel=metadata.channel,
                duration=metadata.duration,
            )
        )
        self._progress(stage, 1.0, "Done")
        return metadata

    def _download(self, work_dir: Path) -> Path:
        stage = Stage.DOWNLOAD
        self._checkpoint(stage)
        self._progress(stage, 0.0, "Starting download...")

        def on_progress(fraction: float) -> None:
            self._progress(stage, min(max(fraction, 0.0), 1.0), "Downloading...")

        try:
            audio_path = self.tools.extract_audio(
                self.job.source, work_dir, on_progress, self.cancel_token
            )
        except Exception as e:
            raise self._failed(stage, e) from e

        self._progress(stage, 1.0, "Done")
        return audio_path

    def _transcribe(self, audio_path: Path) -> list[Segment]:
        stage = Stage.TRANSCRIBE
        self._checkpoint(stage)
        self._progress(stage, 0.0, "Starting transcription...")

        captured: list[Segment] = []

        def on_segment(segment: Segment) -> None:
            captured.append(segment)
            self.stream.emit(TranscriptChunkEvent(segment.text, segment.display_timestamp))
            self._progress(stage, chunk_progress(len(captured)), "Transcribing...")

        try:
            segments = self.tools.transcribe(
                audio_path, self.job.model, on_segment, self.cancel_token
            )
        except Exception as e:
            if not captured or self.cancel_token.cancelled or isinstance(e, PipelineCancelled):
                raise self._failed(stage, e) from e
            # a partial transcript still counts as a successful stage
            logger.warning(
                "Transcriber failed after %d segment(s); keeping partial transcript: %s",
                len(captured),
                e,
            )
            segments = list(captured)

        self._progress(stage, 1.0, "Done")
        return segments

    def _format(self, metadata: VideoMetadata, segments: list[Segment]) -> Path:
        stage = Stage.FORMAT
        self._checkpoint(stage)
        self._progress(stage, 0.0, "Generating markdown...")
        try:
            output_path = self.tools.write_markdown(metadata, segments, self.job)
        except Exception as e:
            raise self._failed(stage, e) from e
        self._progress(stage, 1.0, "Done")
        return output_path

    def _validate(self, output_path: Path) -> None:
        stage = Stage.VALIDATE
        self._checkpoint(stage)
        self._progress(stage, 0.0, "Checking markdown...")
        try:
            result = self.tools.lint_markdown(output_path, self.cancel_token)
        except Exception as e:
            if self.cancel_token.cancelled or isinstance(e, PipelineCancelled):
                raise self._failed(stage, e) from e
            logger.warning("Markdown validation could not run: %s", e)
            self._progress(stage, 1.0, "Warnings found")
            return
        self._checkpoint(stage)

        if result.clean:
            self._progress(stage, 1.0, "Passed")
        else:
            for violation in result.violations:
                logger.warning("lint: %s", violation)
            self._progress(stage, 1.0, "Warnings found")


def start_pipeline(
    job: TranscriptionJob,
    cancel_token: CancelToken | None = None,
    collaborators: Collaborators | None = None,
    maxsize: int = DEFAULT_MAXSIZE,
) -> tuple[EventStream, threading.Thread]:
    """Start a run on a worker thread and return its event stream.

    The caller drains the stream until it closes; the thread ends after
    the terminal event is emitted.
    """
    stream = EventStream(maxsize=maxsize)
    pipeline = Pipeline(job, stream, cancel_token=cancel_token, collaborators=collaborators)
    thread = threading.Thread(target=pipeline.run, name="whisper-transcribe-pipeline", daemon=True)
    thread.start()
    return stream, thread
