"""
whisper_transcribe.transcribe - whisper.cpp transcription engine.

Pipeline Stage 3: Transcribe audio with the whisper.cpp binary, streaming
segment-level text as it is produced. Also manages the local model files.
"""

from __future__ import annotations
