"""
whisper_transcribe.process - Line-oriented external process streaming.

Runs a tool while its stdout is read line by line on the calling thread and
its stderr is drained on a separate reader thread. A watcher thread
terminates the process as soon as the cancel token is set.
"""

from __future__ import annotations

import subprocess
import threading
from collections import deque
from collections.abc import Callable
from typing import IO

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.exceptions import DependencyError, PipelineCancelled, ToolInvocationError
from whisper_transcribe.logging import logger

STDERR_TAIL_LINES = 20
CANCEL_POLL_SECONDS = 0.1
TERMINATE_GRACE_SECONDS = 5.0

INSTALL_HINTS = {
    "yt-dlp": "Install with: pip install yt-dlp (or brew install yt-dlp)",
    "ffmpeg": "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
    "ffprobe": "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
    "whisper.cpp": (
        "Install with: brew install whisper-cpp or build from github.com/ggerganov/whisper.cpp"
    ),
    "markdownlint": "Install with: npm install -g markdownlint-cli",
}


def _drain(stream: IO[str], tail: deque[str]) -> None:
    for line in stream:
        tail.append(line.rstrip("\n"))


def _terminate_on_cancel(proc: subprocess.Popen, cancel_token: CancelToken) -> None:
    while proc.poll() is None:
        if cancel_token.wait(CANCEL_POLL_SECONDS):
            logger.debug("Cancelling process %s", proc.pid)
            proc.terminate()
            return


def stream_process(
    cmd: list[str],
    on_line: Callable[[str], None],
    cancel_token: CancelToken,
    tool: str,
) -> None:
    """Run a command, feeding each stdout line to on_line.

    Args:
        cmd: Command and arguments
        on_line: Called synchronously for every stdout line (newline stripped)
        cancel_token: Terminates the process when set
        tool: Tool name used in error messages

    Raises:
        DependencyError: The executable could not be started
        PipelineCancelled: The token was set while the process ran
        ToolInvocationError: The process exited with a non-zero status
    """
    cancel_token.raise_if_cancelled()
    logger.debug("Running: %s", " ".join(cmd))

    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError as e:
        raise DependencyError(tool, f"{cmd[0]} not found in PATH", INSTALL_HINTS.get(tool)) from e
    except OSError as e:
        raise ToolInvocationError(f"start {tool}: {e}") from e

    stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
    stderr_reader = threading.Thread(
        target=_drain, args=(proc.stderr, stderr_tail), name=f"{tool}-stderr", daemon=True
    )
    watcher = threading.Thread(
        target=_terminate_on_cancel, args=(proc, cancel_token), name=f"{tool}-cancel", daemon=True
    )
    stderr_reader.start()
    watcher.start()

    aborted = False
    try:
        assert proc.stdout is not None
        for line in proc.stdout:
            if cancel_token.cancelled:
                break
            on_line(line.rstrip("\n"))
    except BaseException:
        aborted = True
        raise
    finally:
        stopping = aborted or cancel_token.cancelled
        if stopping and proc.poll() is None:
            proc.terminate()
        try:
            returncode = proc.wait(timeout=TERMINATE_GRACE_SECONDS if stopping else None)
        except subprocess.TimeoutExpired:
            proc.kill()
            returncode = proc.wait()
        stderr_reader.join()
        watcher.join()
        if proc.stdout is not None:
            proc.stdout.close()
        if proc.stderr is not None:
            proc.stderr.close()

    if cancel_token.cancelled:
        raise PipelineCancelled(f"{tool} cancelled")

    if returncode != 0:
        detail = "\n".join(stderr_tail).strip()
        message = f"{tool} failed (exit {returncode})"
        if detail:
            message = f"{message}: {detail}"
        raise ToolInvocationError(message)
