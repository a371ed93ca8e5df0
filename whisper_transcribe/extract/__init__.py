"""
whisper_transcribe.extract - Source metadata and audio extraction.

Pipeline Stages 1-2: describe the source (yt-dlp or ffprobe), then produce
a 16kHz mono WAV for whisper.cpp (yt-dlp or FFmpeg).
"""

from __future__ import annotations
