"""
whisper_transcribe.formatter - Markdown transcript generation.

Pipeline Stages 4-5: wrap segments into an 80-column Markdown document
and check it with markdownlint.
"""

from __future__ import annotations

from whisper_transcribe.formatter.lint import LintResult, lint_markdown
from whisper_transcribe.formatter.markdown import fix_common_issues, render_markdown, write_markdown
from whisper_transcribe.formatter.wrap import wrap, wrap_blockquote, wrap_with_prefix

__all__ = [
    "LintResult",
    "fix_common_issues",
    "lint_markdown",
    "render_markdown",
    "wrap",
    "wrap_blockquote",
    "wrap_with_prefix",
    "write_markdown",
]
