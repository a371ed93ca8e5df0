"""
whisper_transcribe.validation - Dependency checks and input validation.

Validates the environment (external binaries) and transcription sources
before processing.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from whisper_transcribe.config import is_remote_source
from whisper_transcribe.exceptions import DependencyError, ValidationError
from whisper_transcribe.process import INSTALL_HINTS
from whisper_transcribe.transcribe.engine import WHISPER_BINARIES, find_whisper_binary

SUPPORTED_EXTENSIONS = ("wav", "mp3", "m4a", "ogg", "flac", "webm", "mp4")

REQUIRED_TOOLS = {
    "yt-dlp": ["yt-dlp", "--version"],
    "ffmpeg": ["ffmpeg", "-version"],
    "ffprobe": ["ffprobe", "-version"],
}


def validate_url(url: str) -> None:
    """Check that a remote source is an http(s) URL with a host.

    Raises:
        ValidationError: If the URL is empty or malformed
    """
    url = url.strip()
    if not url:
        raise ValidationError("URL is required")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"invalid URL: {url}")


def validate_local_file(path: str) -> Path:
    """Check that a local source exists and has a supported audio extension.

    Returns:
        The expanded path

    Raises:
        ValidationError: If the file is missing, a directory, or unsupported
    """
    path = path.strip()
    if not path:
        raise ValidationError("file path is required")

    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise ValidationError(f"file not found: {path}")
    if file_path.is_dir():
        raise ValidationError("path is a directory, not a file")

    ext = file_path.suffix.lower().lstrip(".")
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"unsupported audio format: .{ext} (supported: {', '.join(SUPPORTED_EXTENSIONS)})"
        )
    return file_path


def validate_source(source: str) -> None:
    """Validate a URL or local file source.

    Raises:
        ValidationError: If the source cannot be transcribed
    """
    if is_remote_source(source):
        validate_url(source)
    else:
        validate_local_file(source)


def _tool_version(cmd: list[str]) -> str:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (subprocess.TimeoutExpired, OSError):
        return "unknown"
    first_line = (proc.stdout or proc.stderr).strip().split("\n")[0]
    return first_line or "unknown"


def check_tool(name: str) -> dict[str, str]:
    """Check that a required tool is on PATH and get its version.

    Raises:
        DependencyError: If the tool is not found
    """
    path = shutil.which(name)
    if not path:
        raise DependencyError(name, "not found in PATH", INSTALL_HINTS.get(name))
    cmd = [path, *REQUIRED_TOOLS.get(name, [name, "--version"])[1:]]
    return {"path": path, "version": _tool_version(cmd)}


def check_whisper() -> dict[str, str]:
    """Check that a whisper.cpp binary can be located.

    Raises:
        DependencyError: If none of the known binary names is found
    """
    path = find_whisper_binary()
    if not path:
        raise DependencyError(
            "whisper.cpp",
            f"binary not found in PATH (tried: {', '.join(WHISPER_BINARIES)})",
            INSTALL_HINTS["whisper.cpp"],
        )
    return {"path": path, "version": "whisper.cpp"}


def check_markdownlint() -> dict[str, str]:
    """Check for markdownlint; it is optional, validation is advisory."""
    return check_tool("markdownlint")


def run_preflight_checks() -> dict[str, Any]:
    """Run all dependency checks.

    Returns:
        Dict with 'passed' (required tools present) and per-tool 'checks'
    """
    results: dict[str, Any] = {"passed": True, "checks": {}}

    for name in REQUIRED_TOOLS:
        try:
            results["checks"][name] = check_tool(name)
        except DependencyError as e:
            results["checks"][name] = {"error": str(e), "install_hint": e.install_hint}
            results["passed"] = False

    try:
        results["checks"]["whisper.cpp"] = check_whisper()
    except DependencyError as e:
        results["checks"]["whisper.cpp"] = {"error": str(e), "install_hint": e.install_hint}
        results["passed"] = False

    try:
        results["checks"]["markdownlint"] = check_markdownlint()
    except DependencyError as e:
        results["checks"]["markdownlint"] = {
            "error": str(e),
            "install_hint": e.install_hint,
            "optional": True,
        }

    return results
