"""
whisper_transcribe.formatter.markdown - Transcript Markdown assembly.

Groups segments into paragraphs (or timestamped lines), wraps them to the
line width, renders the document template and applies an idempotent
fix-up pass before writing the file.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date
from itertools import groupby
from pathlib import Path

from whisper_transcribe.config import TranscriptionJob
from whisper_transcribe.exceptions import OutputError
from whisper_transcribe.extract.metadata import VideoMetadata
from whisper_transcribe.formatter.generator import DocumentRenderer
from whisper_transcribe.formatter.wrap import (
    DEFAULT_WIDTH,
    wrap,
    wrap_blockquote,
    wrap_with_prefix,
)
from whisper_transcribe.io import write_text
from whisper_transcribe.logging import logger
from whisper_transcribe.segments import Segment

TEMPLATE_NAME = "transcript.md.j2"

TERMINAL_PUNCTUATION = (".", "?", "!")
SEGMENTS_PER_PARAGRAPH = 5

SLUG_MAX_LENGTH = 60
SLUG_MIN_CUT = 40
SLUG_FALLBACK = "transcript"
UNTITLED = "Untitled"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_UPLOAD_DATE_RE = re.compile(r"^\d{8}$")


def sanitize_title(title: str) -> str:
    """Make a title safe for a double-quoted frontmatter value."""
    title = title.replace('"', "'")
    title = title.replace(":", "-")
    title = title.replace("\\", "-")
    title = title.replace("/", "-")
    return title.strip()


def slugify(title: str) -> str:
    """Filename stem from a title, at most 60 characters."""
    slug = _NON_ALNUM_RE.sub("-", title.lower()).strip("-")
    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_MAX_LENGTH]
        last_dash = slug.rfind("-")
        if last_dash > SLUG_MIN_CUT:
            slug = slug[:last_dash]
    return slug or SLUG_FALLBACK


def normalize_upload_date(value: str) -> str:
    """YYYYMMDD -> YYYY-MM-DD; anything else is returned unchanged."""
    if _UPLOAD_DATE_RE.match(value):
        return f"{value[:4]}-{value[4:6]}-{value[6:]}"
    return value


def build_attribution(
    channel: str,
    channel_url: str,
    transcribed_date: str,
    width: int = DEFAULT_WIDTH,
) -> str:
    channel = channel or "an unknown source"
    if channel_url:
        text = f"Transcribed from [{channel}]({channel_url}) on {transcribed_date}"
    else:
        text = f"Transcribed from {channel} on {transcribed_date}"
    return "\n".join(wrap_blockquote(text, width))


def _timestamped_blocks(segments: Sequence[Segment], width: int) -> list[str]:
    blocks = []
    for seg in segments:
        prefix = f"**[{seg.display_timestamp}]** "
        blocks.append("\n".join(wrap_with_prefix(prefix, seg.text.strip(), width)))
    return blocks


def _prose_blocks(segments: Sequence[Segment], width: int) -> list[str]:
    blocks: list[str] = []
    buffer: list[str] = []

    def flush() -> None:
        text = " ".join(buffer).strip()
        buffer.clear()
        if text:
            blocks.append("\n".join(wrap(text, width)))

    for seg in segments:
        buffer.append(seg.text)
        if (
            seg.text.rstrip().endswith(TERMINAL_PUNCTUATION)
            or len(buffer) >= SEGMENTS_PER_PARAGRAPH
        ):
            flush()
    flush()
    return blocks


def build_content(
    segments: Sequence[Segment],
    include_timestamps: bool,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Render the transcript body.

    Timestamped mode puts each segment on its own bold-tagged line. Prose
    mode flushes a paragraph at sentence-ending punctuation or after every
    fifth segment since the last flush.
    """
    if include_timestamps:
        blocks = _timestamped_blocks(segments, width)
    else:
        blocks = _prose_blocks(segments, width)
    return "\n\n".join(blocks)


def fix_common_issues(content: str) -> str:
    """Apply automatic fixes for common lint violations.

    Trims trailing whitespace, collapses runs of three or more blank lines
    into one, and ends the text with exactly one newline. Idempotent.
    """
    lines = [line.rstrip(" \t") for line in content.split("\n")]

    fixed: list[str] = []
    for is_blank, group in groupby(lines, key=lambda line: line == ""):
        run = list(group)
        if is_blank and len(run) >= 3:
            run = [""]
        fixed.extend(run)

    return "\n".join(fixed).rstrip("\n") + "\n"


def render_markdown(
    metadata: VideoMetadata,
    segments: Sequence[Segment],
    job: TranscriptionJob,
    today: date | None = None,
    width: int = DEFAULT_WIDTH,
    renderer: DocumentRenderer | None = None,
) -> str:
    """Render the full transcript document as a string."""
    transcribed_date = (today or date.today()).isoformat()
    renderer = renderer or DocumentRenderer()

    data = {
        "title": sanitize_title(metadata.title) or UNTITLED,
        "source": job.source,
        "channel": metadata.channel.replace('"', "'"),
        "upload_date": normalize_upload_date(metadata.upload_date),
        "transcribed_date": transcribed_date,
        "duration": metadata.duration,
        "model": job.model,
        "attribution": build_attribution(
            metadata.channel, metadata.channel_url, transcribed_date, width
        ),
        "content": build_content(segments, job.include_timestamps, width).strip(),
    }

    return fix_common_issues(renderer.render(TEMPLATE_NAME, data))


def output_path_for(metadata: VideoMetadata, job: TranscriptionJob) -> Path:
    return job.output_dir / f"{slugify(metadata.title)}.md"


def write_markdown(
    metadata: VideoMetadata,
    segments: Sequence[Segment],
    job: TranscriptionJob,
    today: date | None = None,
) -> Path:
    """Render the transcript and write it to ``<output_dir>/<slug>.md``.

    Raises:
        OutputError: If the directory cannot be created or the file written
    """
    content = render_markdown(metadata, segments, job, today=today)
    output_path = output_path_for(metadata, job)

    try:
        job.output_dir.mkdir(parents=True, exist_ok=True)
        write_text(output_path, content)
    except OSError as e:
        raise OutputError(f"write {output_path}: {e}") from e

    logger.debug("Wrote %s (%d segments)", output_path, len(segments))
    return output_path
