"""
whisper-transcribe - Local Whisper transcription to Markdown.

Turns a remote video URL or a local audio file into a lint-compliant
Markdown transcript through a five-stage pipeline: metadata fetch →
audio extraction → whisper.cpp transcription → Markdown formatting →
markdownlint validation.
"""

__version__ = "0.1.0"
