"""
whisper_transcribe.utils - Shared utility functions.

Contains common formatting helpers used by the CLI and the pipeline.
"""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS or M:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (H:MM:SS if >= 1 hour, otherwise M:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_bytes(size: int) -> str:
    """Format a byte count as B, KB, MB or GB."""
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    if size >= gb:
        return f"{size / gb:.1f} GB"
    elif size >= mb:
        return f"{size / mb:.1f} MB"
    elif size >= kb:
        return f"{size / kb:.1f} KB"
    return f"{size} B"
