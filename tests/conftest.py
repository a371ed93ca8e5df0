"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from whisper_transcribe import config as config_module
from whisper_transcribe.config import TranscriptionJob
from whisper_transcribe.extract.metadata import VideoMetadata
from whisper_transcribe.formatter.lint import LintResult
from whisper_transcribe.formatter.markdown import write_markdown
from whisper_transcribe.pipeline import Collaborators, EventStream, start_pipeline
from whisper_transcribe.pipeline.events import Event
from whisper_transcribe.segments import Segment, display_timestamp


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME, the model directory and the config search at tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    models_dir = tmp_path / "models"
    models_dir.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("WHISPER_MODEL_PATH", str(models_dir))
    for var in ("WHISPER_DEFAULT_MODEL", "WHISPER_OUTPUT_DIR", "WHISPER_TIMESTAMPS", "WHISPER_BIN"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "USER_CONFIG_DIR", home / ".config" / "whisper-transcribe")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_metadata() -> VideoMetadata:
    return VideoMetadata(
        title="Test Video: Part 1",
        channel="Test Channel",
        channel_url="https://example.com/channel/test",
        duration_seconds=125,
        upload_date="20240115",
        description="A video used in tests.",
        id="abc123",
    )


@pytest.fixture
def make_segments() -> Callable[..., list[Segment]]:
    """Build segments five seconds apart from a list of texts."""

    def build(texts: Sequence[str], spacing: float = 5.0) -> list[Segment]:
        return [
            Segment(
                start=i * spacing,
                end=(i + 1) * spacing,
                text=text,
                display_timestamp=display_timestamp(i * spacing),
            )
            for i, text in enumerate(texts)
        ]

    return build


@pytest.fixture
def sample_segments(make_segments: Callable[..., list[Segment]]) -> list[Segment]:
    return make_segments(
        [
            "Welcome to the show.",
            "Today we talk about rivers",
            "and the towns built on them.",
        ]
    )


@pytest.fixture
def job(tmp_path: Path) -> TranscriptionJob:
    return TranscriptionJob(
        source="https://example.com/watch?v=abc123",
        model="base",
        include_timestamps=False,
        output_dir=tmp_path / "output",
    )


@pytest.fixture
def fake_collaborators(
    sample_metadata: VideoMetadata, sample_segments: list[Segment]
) -> Callable[..., Collaborators]:
    """Factory for Collaborators that never touch external tools.

    Defaults succeed; pass keyword overrides to replace individual steps.
    Formatting uses the real Markdown writer.
    """

    def fetch_metadata(source, cancel_token):
        return sample_metadata

    def extract_audio(source, work_dir, on_progress, cancel_token):
        on_progress(0.5)
        audio_path = work_dir / "audio.wav"
        audio_path.write_bytes(b"RIFF")
        return audio_path

    def transcribe(audio_path, model, on_segment, cancel_token):
        for segment in sample_segments:
            on_segment(segment)
        return list(sample_segments)

    def build(**overrides) -> Collaborators:
        defaults = {
            "validate_source": lambda source: None,
            "fetch_metadata": fetch_metadata,
            "extract_audio": extract_audio,
            "transcribe": transcribe,
            "write_markdown": write_markdown,
            "lint_markdown": lambda path, cancel_token: LintResult(),
        }
        defaults.update(overrides)
        return Collaborators(**defaults)

    return build


@pytest.fixture
def run_events() -> Callable[..., list[Event]]:
    """Run a pipeline to completion and return every event it emitted."""

    def run(job: TranscriptionJob, collaborators: Collaborators, **kwargs) -> list[Event]:
        stream, thread = start_pipeline(job, collaborators=collaborators, **kwargs)
        events = list(stream)
        thread.join(timeout=5)
        assert not thread.is_alive()
        return events

    return run


@pytest.fixture
def closed_stream() -> Callable[[Sequence[Event]], EventStream]:
    """An EventStream preloaded with events and closed."""

    def build(events: Sequence[Event]) -> EventStream:
        stream = EventStream(maxsize=max(len(events) + 1, 1))
        for event in events:
            stream.emit(event)
        stream.close()
        return stream

    return build
