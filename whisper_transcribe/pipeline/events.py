"""
whisper_transcribe.pipeline.events - Typed pipeline events.

Events form a closed union tagged by EventKind. Consumers dispatch on
``event.kind``; CompletedEvent and ErrorEvent are the terminal kinds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union

from whisper_transcribe.segments import Stats


class Stage(str, Enum):
    """Pipeline phase reporting an event."""

    METADATA = "metadata"
    DOWNLOAD = "download"
    TRANSCRIBE = "transcribe"
    FORMAT = "format"
    VALIDATE = "validate"


class EventKind(str, Enum):
    METADATA = "metadata"
    PROGRESS = "progress"
    TRANSCRIPT_CHUNK = "transcript_chunk"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_KINDS = frozenset({EventKind.COMPLETED, EventKind.ERROR})


@dataclass(frozen=True)
class MetadataEvent:
    """Source metadata was fetched."""

    kind: ClassVar[EventKind] = EventKind.METADATA

    title: str
    channel: str
    duration: str


@dataclass(frozen=True)
class ProgressEvent:
    """Progress within a stage; fraction is in [0, 1]."""

    kind: ClassVar[EventKind] = EventKind.PROGRESS

    stage: Stage
    fraction: float
    message: str

    def __post_init__(self) -> None:
        if not 0.0 <= self.fraction <= 1.0:
            raise ValueError(f"fraction must be within [0, 1], got {self.fraction}")


@dataclass(frozen=True)
class TranscriptChunkEvent:
    """One transcribed segment, streamed as it is produced."""

    kind: ClassVar[EventKind] = EventKind.TRANSCRIPT_CHUNK

    text: str
    display_timestamp: str


@dataclass(frozen=True)
class CompletedEvent:
    kind: ClassVar[EventKind] = EventKind.COMPLETED

    output_path: Path
    stats: Stats


@dataclass(frozen=True)
class ErrorEvent:
    kind: ClassVar[EventKind] = EventKind.ERROR

    stage: Stage
    error: BaseException = field(compare=False)

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


Event = Union[MetadataEvent, ProgressEvent, TranscriptChunkEvent, CompletedEvent, ErrorEvent]


def is_terminal(event: Event) -> bool:
    return event.kind in TERMINAL_KINDS
