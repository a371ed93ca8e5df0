"""
whisper_transcribe.segments - Transcript segment and run statistics models.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Segment:
    """One timed fragment of transcribed speech.

    Attributes:
        start: Offset of the fragment start, in seconds
        end: Offset of the fragment end, in seconds
        text: Transcribed text, stripped
        display_timestamp: Start offset as shown to readers (MM:SS or HH:MM:SS)
    """

    start: float
    end: float
    text: str
    display_timestamp: str


@dataclass(frozen=True)
class Stats:
    """Summary attached to a completed run."""

    duration: str
    word_count: int
    model_name: str


def count_words(segments: Iterable[Segment]) -> int:
    """Count whitespace-delimited tokens across all segment texts."""
    return sum(len(seg.text.split()) for seg in segments)


def display_timestamp(seconds: float) -> str:
    """Format an offset as MM:SS, or HH:MM:SS once past the first hour."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours == 0:
        return f"{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
