"""
whisper_transcribe.formatter.lint - markdownlint validation adapter.

Runs markdownlint-cli against a rendered transcript with a fixed rule set
(80-column lines outside code blocks and tables, no frontmatter-title
heading rule, no first-line-heading rule).
"""

from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.exceptions import DependencyError, PipelineCancelled, ToolInvocationError
from whisper_transcribe.logging import logger
from whisper_transcribe.process import CANCEL_POLL_SECONDS, INSTALL_HINTS

LINT_TIMEOUT_SECONDS = 60

MARKDOWNLINT_CONFIG = {
    "default": True,
    "MD013": {
        "line_length": 80,
        "code_blocks": False,
        "tables": False,
    },
    "MD025": {
        "front_matter_title": "",
    },
    "MD041": False,
}


@dataclass
class LintResult:
    """Outcome of a lint run; advisory only."""

    violations: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.violations


def _run_markdownlint(cmd: list[str], cancel_token: CancelToken) -> tuple[int, str]:
    """Run markdownlint, polling the cancel token until it exits."""
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
        )
    except OSError as e:
        raise ToolInvocationError(f"start markdownlint: {e}") from e

    deadline = time.monotonic() + LINT_TIMEOUT_SECONDS
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=CANCEL_POLL_SECONDS)
            return proc.returncode, stdout + stderr
        except subprocess.TimeoutExpired:
            if not cancel_token.cancelled and time.monotonic() < deadline:
                continue
            proc.kill()
            proc.communicate()
            if cancel_token.cancelled:
                raise PipelineCancelled("markdownlint cancelled")
            raise ToolInvocationError(f"markdownlint timed out after {LINT_TIMEOUT_SECONDS}s")


def lint_markdown(path: Path, cancel_token: CancelToken) -> LintResult:
    """Validate a Markdown file with markdownlint.

    Args:
        path: Rendered transcript
        cancel_token: Kills markdownlint when set

    Returns:
        LintResult listing human-readable violations (empty when clean)

    Raises:
        DependencyError: markdownlint is not installed
        PipelineCancelled: The token was set while markdownlint ran
        ToolInvocationError: markdownlint failed without reporting violations
    """
    markdownlint = shutil.which("markdownlint")
    if not markdownlint:
        raise DependencyError(
            "markdownlint", "not found in PATH", INSTALL_HINTS["markdownlint"]
        )

    with tempfile.TemporaryDirectory(prefix="whisper-transcribe-lint-") as tmp_dir:
        config_path = Path(tmp_dir) / "markdownlint.json"
        config_path.write_text(json.dumps(MARKDOWNLINT_CONFIG, indent=2), encoding="utf-8")
        returncode, output = _run_markdownlint(
            [markdownlint, "--config", str(config_path), str(path)], cancel_token
        )

    violations = [line for line in output.strip().splitlines() if line.strip()]

    if returncode != 0 and not violations:
        raise ToolInvocationError(f"markdownlint failed (exit {returncode})")

    for violation in violations:
        logger.debug("lint: %s", violation)

    return LintResult(violations=violations)
