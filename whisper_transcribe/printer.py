"""
whisper_transcribe.printer - Line-oriented rendering of pipeline events.

Turns the event stream into console status lines. Used by the CLI; a UI
adapter would consume the same stream.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from whisper_transcribe.exceptions import DependencyError, ModelNotFoundError
from whisper_transcribe.pipeline.events import Event, EventKind, Stage
from whisper_transcribe.pipeline.stream import EventStream

PERCENT_STEP = 10


class EventPrinter:
    """Prints events as they arrive.

    Progress is printed when a stage's message changes or its percentage
    enters a new 10% step, so chunk-by-chunk updates do not flood the
    terminal.
    """

    def __init__(self, console: Console | None = None, show_chunks: bool = True) -> None:
        self.console = console or Console()
        self.show_chunks = show_chunks
        self._last_progress: tuple[Stage, str, int] | None = None

    def handle(self, event: Event) -> None:
        if event.kind is EventKind.METADATA:
            self.console.print(f"[bold]Video:[/bold] {escape(event.title)}")
            self.console.print(f"[bold]Channel:[/bold] {escape(event.channel)}")
            self.console.print(f"[bold]Duration:[/bold] {escape(event.duration)}")
        elif event.kind is EventKind.PROGRESS:
            self._print_progress(event.stage, event.fraction, event.message)
        elif event.kind is EventKind.TRANSCRIPT_CHUNK:
            if self.show_chunks:
                self.console.print(
                    f"[dim]{escape(f'[{event.display_timestamp}]')} {escape(event.text)}[/dim]"
                )
        elif event.kind is EventKind.COMPLETED:
            self.console.print("\n[green]✓[/green] Transcription complete!")
            self.console.print(f"  Output: {escape(str(event.output_path))}")
            self.console.print(f"  Duration: {escape(event.stats.duration)}")
            self.console.print(f"  Words: {event.stats.word_count}")
            self.console.print(f"  Model: {escape(event.stats.model_name)}")
        elif event.kind is EventKind.ERROR:
            self._print_error(event.stage, event.error, event.message)
        else:
            raise TypeError(f"unknown event kind: {event.kind!r}")

    def _print_progress(self, stage: Stage, fraction: float, message: str) -> None:
        percent = int(fraction * 100)
        bucket = percent - percent % PERCENT_STEP
        last = self._last_progress
        if last is not None and last[0] == stage and last[1] == message and last[2] == bucket:
            return
        self._last_progress = (stage, message, bucket)
        label = escape(f"[{stage.value}]")
        self.console.print(f"[cyan]{label}[/cyan] {escape(message)} ({percent}%)")

    def _print_error(self, stage: Stage, error: BaseException, message: str) -> None:
        self.console.print(f"[red]✗ {stage.value}: {escape(message)}[/red]")
        if isinstance(error, DependencyError) and error.install_hint:
            self.console.print(f"[dim]  {escape(error.install_hint)}[/dim]")
        elif isinstance(error, ModelNotFoundError):
            self.console.print(
                f"[dim]  Run 'whisper-transcribe download-model {escape(error.model)}'[/dim]"
            )

    def consume(self, stream: EventStream) -> int:
        """Print every event until the stream closes.

        Returns:
            0 after a CompletedEvent, 1 after an ErrorEvent or a stream that
            closed without a terminal event
        """
        for event in stream:
            self.handle(event)
        terminal = stream.terminal
        if terminal is not None and terminal.kind is EventKind.COMPLETED:
            return 0
        return 1
