"""
whisper_transcribe.extract.audio - Audio extraction for transcription.

Produces a 16kHz mono WAV (the format whisper.cpp expects):
- remote URLs are fetched and converted by yt-dlp
- local files are converted by FFmpeg
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.config import is_remote_source
from whisper_transcribe.exceptions import ToolInvocationError
from whisper_transcribe.extract.metadata import probe_duration
from whisper_transcribe.logging import logger
from whisper_transcribe.process import stream_process

ProgressCallback = Callable[[float], None]

PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)%")
DESTINATION_MARKER = "[ExtractAudio] Destination:"
OUT_TIME_RE = re.compile(r"^out_time_(?:ms|us)=(\d+)$")


def extract_audio(
    source: str,
    work_dir: Path,
    on_progress: ProgressCallback,
    cancel_token: CancelToken,
) -> Path:
    """Extract 16kHz mono WAV audio from a URL or local file.

    Args:
        source: Remote URL or local media path
        work_dir: Directory receiving the audio file
        on_progress: Called with fractional completion in [0, 1]
        cancel_token: Cooperative cancellation

    Returns:
        Path to the extracted WAV file

    Raises:
        ToolInvocationError: If the tool fails or no audio file results
    """
    work_dir.mkdir(parents=True, exist_ok=True)
    if is_remote_source(source):
        return download_audio(source, work_dir, on_progress, cancel_token)
    return convert_local_audio(Path(source).expanduser(), work_dir, on_progress, cancel_token)


def parse_download_progress(line: str) -> float | None:
    """Fraction from a yt-dlp progress line such as ``[download]  45.2% of ...``."""
    match = PERCENT_RE.search(line)
    if not match:
        return None
    return float(match.group(1)) / 100.0


def parse_destination(line: str) -> str | None:
    if DESTINATION_MARKER not in line:
        return None
    _, _, path = line.partition(": ")
    path = path.strip()
    return path or None


def download_audio(
    url: str,
    work_dir: Path,
    on_progress: ProgressCallback,
    cancel_token: CancelToken,
) -> Path:
    """Download and convert remote audio with yt-dlp."""
    output_template = str(work_dir / "%(id)s.%(ext)s")
    cmd = [
        "yt-dlp",
        "--extract-audio",
        "--audio-format",
        "wav",
        "--audio-quality",
        "0",
        "--postprocessor-args",
        "ffmpeg:-ar 16000 -ac 1",
        "--no-playlist",
        "--newline",
        "--progress",
        "-o",
        output_template,
        url,
    ]

    destination: list[str] = []

    def handle_line(line: str) -> None:
        fraction = parse_download_progress(line)
        if fraction is not None:
            on_progress(fraction)
        path = parse_destination(line)
        if path:
            destination.append(path)

    stream_process(cmd, handle_line, cancel_token, "yt-dlp")

    if destination and Path(destination[-1]).exists():
        return Path(destination[-1])

    candidates = sorted(work_dir.glob("*.wav"), key=lambda p: p.stat().st_mtime)
    if not candidates:
        raise ToolInvocationError("no audio file produced")
    return candidates[-1]


def convert_local_audio(
    source_path: Path,
    work_dir: Path,
    on_progress: ProgressCallback,
    cancel_token: CancelToken,
) -> Path:
    """Convert a local media file to 16kHz mono PCM WAV with FFmpeg."""
    output_path = work_dir / f"{source_path.stem}.wav"
    duration = probe_duration(source_path, cancel_token)
    logger.debug("Converting %s (%.1fs) to %s", source_path, duration, output_path)

    cmd = [
        "ffmpeg",
        "-y",
        "-nostats",
        "-i",
        str(source_path),
        "-vn",
        "-acodec",
        "pcm_s16le",
        "-ar",
        "16000",
        "-ac",
        "1",
        "-progress",
        "pipe:1",
        str(output_path),
    ]

    def handle_line(line: str) -> None:
        match = OUT_TIME_RE.match(line.strip())
        if match and duration > 0:
            # ffmpeg reports out_time_ms in microseconds
            seconds = int(match.group(1)) / 1_000_000
            on_progress(min(seconds / duration, 1.0))

    stream_process(cmd, handle_line, cancel_token, "ffmpeg")

    if not output_path.exists():
        raise ToolInvocationError("no audio file produced")
    return output_path
