"""
whisper_transcribe.cli - Typer CLI entry point.

Provides the transcribe command plus model management and environment
checks.
"""

from __future__ import annotations

from pathlib import Path

import pydantic
import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from whisper_transcribe import __version__
from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.config import (
    CONFIG_FILENAME,
    USER_CONFIG_DIR,
    TranscriptionJob,
    create_default_config,
    load_config,
    write_config,
)
from whisper_transcribe.exceptions import (
    ConfigError,
    ModelNotFoundError,
    ValidationError,
    WhisperTranscribeError,
)
from whisper_transcribe.logging import configure_logging
from whisper_transcribe.pipeline import default_collaborators, start_pipeline
from whisper_transcribe.printer import EventPrinter
from whisper_transcribe.transcribe.engine import check_model
from whisper_transcribe.transcribe.models import (
    AVAILABLE_MODELS,
    MODEL_NAMES,
    download_model,
    get_model_info,
    get_model_path,
    is_downloaded,
)
from whisper_transcribe.utils import format_bytes
from whisper_transcribe.validation import run_preflight_checks, validate_source

app = typer.Typer(
    name="whisper-transcribe",
    help="Transcribe online videos and local audio to Markdown with whisper.cpp.",
    add_completion=False,
)
console = Console()

JOIN_TIMEOUT_SECONDS = 10.0


def version_callback(value: bool) -> None:
    if value:
        console.print(f"whisper-transcribe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """whisper-transcribe - video and audio to Markdown transcripts."""
    pass


def _download_with_progress(name: str) -> Path:
    info = get_model_info(name)
    with Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"{info.name} ({info.size})", total=None)

        def on_progress(downloaded: int, total: int) -> None:
            progress.update(task, completed=downloaded, total=total or None)

        return download_model(name, on_progress=on_progress)


def _report_download(path: Path) -> None:
    size = format_bytes(path.stat().st_size)
    console.print(f"[green]✓[/green] Downloaded {path.name} ({size})")
    console.print(f"[dim]  {path}[/dim]")


def ensure_model(model: str, assume_yes: bool) -> None:
    """Make sure the model is available, offering to download it.

    Raises:
        typer.Exit: If the model is missing and cannot or will not be fetched
    """
    try:
        check_model(model)
        return
    except ModelNotFoundError as e:
        if model not in MODEL_NAMES:
            console.print(f"[red]Error: {e}[/red]")
            console.print(f"[dim]Known models: {', '.join(MODEL_NAMES)}[/dim]")
            raise typer.Exit(1)

    info = get_model_info(model)
    console.print(f"[yellow]Model '{model}' is not downloaded ({info.size}).[/yellow]")
    if not assume_yes and not typer.confirm("Download it now?", default=True):
        console.print("[dim]Run 'whisper-transcribe download-model' when ready[/dim]")
        raise typer.Exit(1)

    try:
        path = _download_with_progress(model)
    except WhisperTranscribeError as e:
        console.print(f"[red]Error downloading model: {e}[/red]")
        raise typer.Exit(1)
    _report_download(path)


@app.command("transcribe")
def transcribe_cmd(
    source: str = typer.Argument(..., help="Video URL or local audio/video file"),
    model: str | None = typer.Option(None, "--model", "-m", help="Whisper model name"),
    timestamps: bool = typer.Option(
        False, "--timestamps", "-t", help="Prefix each segment with a timestamp"
    ),
    output_dir: Path | None = typer.Option(
        None, "--output", "-o", help="Directory to write the transcript to"
    ),
    config_file: Path | None = typer.Option(None, "--config", help="Path to config.yaml"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Download a missing model without asking"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Transcribe a video URL or local file to Markdown."""
    configure_logging(verbose)

    try:
        config = load_config(config_file)
        job = TranscriptionJob.from_config(
            config,
            source,
            model=model,
            include_timestamps=True if timestamps else None,
            output_dir=output_dir,
        )
        validate_source(job.source)
    except (ConfigError, ValidationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except pydantic.ValidationError as e:
        console.print(f"[red]Error: invalid arguments: {e}[/red]")
        raise typer.Exit(1)

    ensure_model(job.model, yes)

    cancel_token = CancelToken()
    stream, thread = start_pipeline(
        job, cancel_token=cancel_token, collaborators=default_collaborators()
    )
    printer = EventPrinter(console)

    while True:
        try:
            exit_code = printer.consume(stream)
            break
        except KeyboardInterrupt:
            if not cancel_token.cancelled:
                console.print("\n[yellow]Cancelling...[/yellow]")
                cancel_token.cancel()

    thread.join(timeout=JOIN_TIMEOUT_SECONDS)
    if exit_code:
        raise typer.Exit(exit_code)


@app.command("models")
def list_models() -> None:
    """List available whisper.cpp models."""
    table = Table(title="Whisper Models")
    table.add_column("Name", style="cyan")
    table.add_column("Size", style="green")
    table.add_column("Installed")

    for info in AVAILABLE_MODELS:
        installed = "[green]✓[/green]" if is_downloaded(info.name) else "[dim]—[/dim]"
        table.add_row(info.name, info.size, installed)

    console.print(table)


@app.command("download-model")
def download_model_cmd(
    name: str = typer.Argument(..., help="Model name (see 'whisper-transcribe models')"),
    force: bool = typer.Option(False, "--force", "-f", help="Download even if present"),
) -> None:
    """Download a whisper.cpp model from Hugging Face."""
    try:
        get_model_info(name)
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print(f"[dim]Known models: {', '.join(MODEL_NAMES)}[/dim]")
        raise typer.Exit(1)

    if is_downloaded(name) and not force:
        console.print(f"[green]✓[/green] Model '{name}' already downloaded")
        console.print(f"[dim]  {get_model_path(name)}[/dim]")
        return

    try:
        path = _download_with_progress(name)
    except WhisperTranscribeError as e:
        console.print(f"[red]Error downloading model: {e}[/red]")
        raise typer.Exit(1)

    _report_download(path)


@app.command("check")
def check_dependencies() -> None:
    """Check external tool dependencies."""
    console.print("[cyan]Running preflight checks...[/cyan]\n")

    results = run_preflight_checks()

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    for name, check in results["checks"].items():
        if "error" not in check:
            table.add_row(name, "✓ Installed", check.get("version", "unknown"))
        elif check.get("optional"):
            table.add_row(name, "⚠ Optional", check.get("install_hint") or check["error"])
        else:
            table.add_row(name, "✗ Missing", check.get("install_hint") or check["error"])

    console.print(table)

    if results["passed"]:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        console.print("[dim]Install the missing tools before transcribing[/dim]")
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: Path | None = typer.Option(
        None, "--path", "-p", help="Where to write the config file"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default config.yaml."""
    config_path = path or USER_CONFIG_DIR / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[red]Error: {config_path} already exists[/red]")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    try:
        write_config(create_default_config(), config_path)
    except OSError as e:
        console.print(f"[red]Error writing config: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Wrote {config_path}")


if __name__ == "__main__":
    app()
