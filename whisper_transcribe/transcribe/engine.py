"""
whisper_transcribe.transcribe.engine - whisper.cpp transcription engine.

Runs the whisper.cpp command-line binary and parses its timestamped stdout
into Segments as they are printed, reporting each one to a callback.
"""

from __future__ import annotations

import os
import re
import shutil
from collections.abc import Callable
from pathlib import Path

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.exceptions import DependencyError, ModelNotFoundError
from whisper_transcribe.process import INSTALL_HINTS, stream_process
from whisper_transcribe.segments import Segment, display_timestamp
from whisper_transcribe.transcribe.models import AVAILABLE_MODELS, get_models_dir

WHISPER_BINARIES = ("whisper-cpp", "whisper", "main", "whisper-cli")

SEGMENT_RE = re.compile(
    r"\[(\d{2}:\d{2}:\d{2}[.,]\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2}[.,]\d{3})\]\s*(.*)"
)

SegmentCallback = Callable[[Segment], None]


def find_whisper_binary() -> str | None:
    """Locate the whisper.cpp binary on PATH, then via $WHISPER_BIN."""
    for name in WHISPER_BINARIES:
        path = shutil.which(name)
        if path:
            return path

    env_bin = os.environ.get("WHISPER_BIN")
    if env_bin and Path(env_bin).exists():
        return env_bin

    return None


def model_search_dirs() -> list[Path]:
    home = Path.home()
    dirs = [
        os.environ.get("WHISPER_MODEL_PATH"),
        str(get_models_dir()),
        str(home / ".whisper" / "models"),
        str(home / ".cache" / "whisper"),
        "/usr/share/whisper/models",
        "/usr/local/share/whisper/models",
    ]
    return [Path(d) for d in dirs if d]


def model_filenames(model: str) -> list[str]:
    names = [
        f"ggml-{model}.bin",
        f"ggml-{model}.en.bin",
        f"{model}.bin",
        f"ggml-model-{model}.bin",
    ]
    # catalog aliases such as "large" map to a differently named file
    for info in AVAILABLE_MODELS:
        if info.name == model and info.filename not in names:
            names.insert(0, info.filename)
    return names


def find_model_path(model: str) -> Path | None:
    """Search the known model directories for a ggml file for this model."""
    names = model_filenames(model)
    for base in model_search_dirs():
        for name in names:
            candidate = base / name
            if candidate.is_file():
                return candidate

    for name in names:
        candidate = Path(name)
        if candidate.is_file():
            return candidate

    return None


def model_exists(model: str) -> bool:
    return find_model_path(model) is not None


def check_model(model: str) -> Path:
    """Return the model path or raise ModelNotFoundError."""
    path = find_model_path(model)
    if path is None:
        raise ModelNotFoundError(model)
    return path


def parse_timestamp(value: str) -> float:
    """Seconds from ``HH:MM:SS.mmm`` (comma or dot before milliseconds)."""
    hours, minutes, seconds = value.replace(",", ".").split(":")
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def parse_segment_line(line: str) -> Segment | None:
    """Parse one whisper.cpp output line; None for non-segment or empty lines."""
    match = SEGMENT_RE.search(line)
    if not match:
        return None

    text = match.group(3).strip()
    if not text:
        return None

    start = parse_timestamp(match.group(1))
    return Segment(
        start=start,
        end=parse_timestamp(match.group(2)),
        text=text,
        display_timestamp=display_timestamp(start),
    )


def transcribe(
    audio_path: Path,
    model: str,
    on_segment: SegmentCallback,
    cancel_token: CancelToken,
) -> list[Segment]:
    """Transcribe a 16kHz WAV file with whisper.cpp.

    Args:
        audio_path: Path to the audio file
        model: Model name (tiny, base, small, medium, large, ...)
        on_segment: Called once per segment, in output order
        cancel_token: Cooperative cancellation

    Returns:
        All segments, in order

    Raises:
        DependencyError: whisper.cpp binary not found
        ModelNotFoundError: Model file not present locally
        ToolInvocationError: whisper.cpp exited with an error
    """
    whisper_bin = find_whisper_binary()
    if whisper_bin is None:
        raise DependencyError(
            "whisper.cpp",
            f"binary not found in PATH (tried: {', '.join(WHISPER_BINARIES)})",
            INSTALL_HINTS["whisper.cpp"],
        )

    model_path = check_model(model)

    cmd = [
        whisper_bin,
        "-m",
        str(model_path),
        "-f",
        str(audio_path),
        "--print-progress",
    ]

    segments: list[Segment] = []

    def handle_line(line: str) -> None:
        segment = parse_segment_line(line)
        if segment is not None:
            segments.append(segment)
            on_segment(segment)

    stream_process(cmd, handle_line, cancel_token, "whisper.cpp")
    return segments
