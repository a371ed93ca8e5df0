"""
whisper_transcribe.pipeline - Cancelable, event-streaming transcription pipeline.
"""

from whisper_transcribe.pipeline.events import (
    CompletedEvent,
    ErrorEvent,
    Event,
    EventKind,
    MetadataEvent,
    ProgressEvent,
    Stage,
    TranscriptChunkEvent,
    is_terminal,
)
from whisper_transcribe.pipeline.orchestrator import (
    Collaborators,
    Pipeline,
    default_collaborators,
    start_pipeline,
)
from whisper_transcribe.pipeline.stream import EventStream, StreamClosedError

__all__ = [
    "Collaborators",
    "CompletedEvent",
    "ErrorEvent",
    "Event",
    "EventKind",
    "EventStream",
    "MetadataEvent",
    "Pipeline",
    "ProgressEvent",
    "Stage",
    "StreamClosedError",
    "TranscriptChunkEvent",
    "default_collaborators",
    "is_terminal",
    "start_pipeline",
]
