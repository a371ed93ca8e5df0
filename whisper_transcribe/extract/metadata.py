"""
whisper_transcribe.extract.metadata - Source metadata fetching.

Remote URLs are described by ``yt-dlp --dump-json``; local files by
``ffprobe``. Both are normalised into a VideoMetadata model.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.config import is_remote_source
from whisper_transcribe.exceptions import ToolInvocationError
from whisper_transcribe.process import stream_process
from whisper_transcribe.utils import format_duration

LOCAL_CHANNEL = "Local file"


class VideoMetadata(BaseModel):
    """Descriptive metadata for a transcription source."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    channel: str = ""
    channel_url: str = ""
    duration_seconds: int = 0
    upload_date: str = ""
    description: str = ""
    id: str = ""

    @field_validator(
        "title", "channel", "channel_url", "upload_date", "description", "id", mode="before"
    )
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def coerce_duration(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        return int(float(v))

    @property
    def duration(self) -> str:
        return format_duration(self.duration_seconds)


def fetch_metadata(source: str, cancel_token: CancelToken) -> VideoMetadata:
    """Fetch metadata for a URL or local file.

    Raises:
        ToolInvocationError: Tool failed or printed unparseable output
        PipelineCancelled: Token set while the tool ran
    """
    if is_remote_source(source):
        return fetch_remote_metadata(source, cancel_token)
    return probe_local_metadata(Path(source).expanduser(), cancel_token)


def _run_json(cmd: list[str], cancel_token: CancelToken, tool: str) -> dict[str, Any]:
    lines: list[str] = []
    stream_process(cmd, lines.append, cancel_token, tool)
    output = "\n".join(lines).strip()
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ToolInvocationError(f"parse {tool} metadata: {e}") from e
    if not isinstance(data, dict):
        raise ToolInvocationError(f"parse {tool} metadata: expected a JSON object")
    return data


def fetch_remote_metadata(url: str, cancel_token: CancelToken) -> VideoMetadata:
    cmd = [
        "yt-dlp",
        "--dump-json",
        "--no-download",
        "--no-playlist",
        "--no-warnings",
        url,
    ]
    data = _run_json(cmd, cancel_token, "yt-dlp")
    return VideoMetadata(
        title=data.get("title"),
        channel=data.get("channel") or data.get("uploader"),
        channel_url=data.get("channel_url") or data.get("uploader_url"),
        duration_seconds=data.get("duration"),
        upload_date=data.get("upload_date"),
        description=data.get("description"),
        id=data.get("id"),
    )


def probe_local_metadata(path: Path, cancel_token: CancelToken) -> VideoMetadata:
    """Describe a local media file using ffprobe format tags."""
    data = probe_format(path, cancel_token)
    fmt = data.get("format", {})
    tags = {k.lower(): v for k, v in (fmt.get("tags") or {}).items()}

    return VideoMetadata(
        title=tags.get("title") or path.stem,
        channel=tags.get("artist") or tags.get("album_artist") or LOCAL_CHANNEL,
        duration_seconds=fmt.get("duration") or 0,
        upload_date=str(tags.get("date") or "").replace("-", ""),
        description=tags.get("comment") or "",
        id=path.stem,
    )


def probe_format(path: Path, cancel_token: CancelToken) -> dict[str, Any]:
    cmd = [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        str(path),
    ]
    return _run_json(cmd, cancel_token, "ffprobe")


def probe_duration(path: Path, cancel_token: CancelToken) -> float:
    """Duration of a local media file in seconds, 0.0 if unknown."""
    fmt = probe_format(path, cancel_token).get("format", {})
    try:
        return float(fmt.get("duration") or 0.0)
    except (TypeError, ValueError):
        return 0.0
