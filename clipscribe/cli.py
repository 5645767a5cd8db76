"""
clipscribe.cli - Typer CLI entry point.

Provides the init, segment, transcribe and email subcommands.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from clipscribe import __version__
from clipscribe.config import (
    CONFIG_FILENAME,
    create_default_config,
    load_config,
    write_config,
)
from clipscribe.exceptions import ClipscribeError, ConfigError
from clipscribe.logging import configure_logging
from clipscribe.utils import format_duration, format_minutes

app = typer.Typer(
    name="clipscribe",
    help="Segmented transcription for long recordings.\n\n"
    "Cuts a video or audio file into 10-second segments and transcribes them "
    "with a remote Whisper API or an on-device Whisper model.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"clipscribe {__version__}")
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
    """Clipscribe - segmented transcription for long recordings."""
    pass


@app.command("init")
def init_config(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config in"),
    mode: str = typer.Option("local", "--mode", "-m", help="Default mode: remote or local"),
) -> None:
    """Write a default clipscribe.yaml."""
    config_path = Path(path) / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    try:
        config = create_default_config(mode)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    write_config(config, config_path)
    console.print(f"[green]✓[/green] Wrote {config_path} (mode: {mode})")


@app.command("segment")
def segment_cmd(
    source: Path = typer.Argument(..., help="Video or audio file"),
    slice_duration: float = typer.Option(
        10.0, "--slice", "-s", help="Segment length in seconds"
    ),
) -> None:
    """Show how a recording will be split into segments."""
    from clipscribe.extract.audio import plan_windows, probe_audio, segment_file_name

    if not source.exists():
        console.print(f"[red]Error: File not found: {source}[/red]")
        raise typer.Exit(1)

    try:
        metadata = probe_audio(source)
    except ClipscribeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not metadata["has_audio"]:
        console.print("[red]Error: No audio track found in the file[/red]")
        raise typer.Exit(1)

    try:
        windows = plan_windows(metadata["duration_seconds"], slice_duration)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not windows:
        console.print(f"[red]Error: No audio segments could be created from {source.name}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Segments for {source.name}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("File", style="cyan")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")

    for i, (start, end) in enumerate(windows):
        table.add_row(
            str(i + 1),
            segment_file_name(source, i + 1),
            format_duration(start),
            format_duration(end),
        )

    console.print(table)
    console.print(
        f"\n{len(windows)} segment(s), "
        f"{format_minutes(metadata['duration_seconds'])} of audio"
    )


@app.command("transcribe")
def transcribe_cmd(
    source: Path = typer.Argument(..., help="Video or audio file"),
    mode: str | None = typer.Option(None, "--mode", "-m", help="remote or local"),
    concurrency: int | None = typer.Option(
        None, "--concurrency", "-c", help="Max concurrent remote requests"
    ),
    model: str | None = typer.Option(
        None, "--model", help="Model (remote model id or local Whisper size)"
    ),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Local backend (transformers, faster, mlx)"
    ),
    slice_duration: float | None = typer.Option(
        None, "--slice", "-s", help="Segment length in seconds"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write transcript here"),
    fmt: str | None = typer.Option(None, "--format", "-f", help="Output format (txt, json)"),
    email_output: Path | None = typer.Option(
        None, "--email", help="Also draft an email from the transcript (JSON)"
    ),
    config_file: Path | None = typer.Option(None, "--config", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Split a recording into segments and transcribe them."""
    from clipscribe.extract.audio import segment_recording
    from clipscribe.transcribe import create_service
    from clipscribe.transcribe.progress import RichProgress
    from clipscribe.transcript import (
        apply_results,
        existing_transcript,
        join_transcript,
        write_transcript,
    )

    configure_logging(verbose)

    overrides = {
        "mode": mode,
        "max_concurrent_requests": concurrency,
        "local_backend": backend,
        "slice_duration": slice_duration,
        "output_format": fmt,
    }
    try:
        config = load_config(config_file, overrides)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if model:
        field = "remote_model" if config.mode == "remote" else "local_model"
        config = config.model_copy(update={field: model})

    console.print(f"[cyan]Splitting {source.name} into segments...[/cyan]")
    try:
        segments = segment_recording(source, slice_duration=config.slice_duration)
    except ClipscribeError as e:
        console.print(f"[red]Failed to split audio: {e}[/red]")
        raise typer.Exit(1)

    duration = segments[-1].end_time
    console.print(
        f"[dim]  {len(segments)} segment(s), {format_minutes(duration)} of audio extracted[/dim]"
    )

    try:
        service = create_service(config)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[cyan]Transcribing using {config.mode} mode...[/cyan]")
    try:
        with RichProgress(console=console) as progress:
            results = asyncio.run(service.transcribe_segments(segments, progress))
    except ClipscribeError as e:
        console.print(f"[red]Failed to transcribe audio: {e}[/red]")
        raise typer.Exit(1)

    apply_results(segments, results)

    if output:
        write_transcript(
            output,
            segments,
            results,
            fmt=config.output_format,
            source=str(source),
            mode=config.mode,
        )
        console.print(f"[green]✓[/green] Transcript written to {output}")
    else:
        console.print()
        console.print(join_transcript(results), markup=False, highlight=False)

    if email_output:
        draft_email(existing_transcript(segments), config, email_output)


@app.command("email")
def email_cmd(
    transcript: Path = typer.Argument(..., help="Transcript file (.txt or .json)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the draft as JSON"),
    model: str | None = typer.Option(None, "--model", help="Chat model (any litellm model id)"),
    company: str | None = typer.Option(None, "--company", help="Company or sender name"),
    config_file: Path | None = typer.Option(None, "--config", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Draft an email from a saved transcript."""
    from clipscribe.transcript import read_transcript

    configure_logging(verbose)

    if not transcript.exists():
        console.print(f"[red]Error: File not found: {transcript}[/red]")
        raise typer.Exit(1)

    try:
        config = load_config(config_file, {"email_model": model, "email_company": company})
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        text = read_transcript(transcript)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    draft_email(text, config, output)


def draft_email(transcript: str, config, output: Path | None) -> None:
    """Generate an email draft and write it to ``output`` or the console."""
    from clipscribe.email import create_client_from_config, generate_email
    from clipscribe.io import write_json

    console.print(f"[cyan]Drafting email with {config.email_model}...[/cyan]")
    try:
        draft = generate_email(
            transcript,
            create_client_from_config(config),
            company_name=config.email_company,
        )
    except (ClipscribeError, ValueError) as e:
        console.print(f"[red]Failed to generate email: {e}[/red]")
        raise typer.Exit(1)

    if output:
        write_json(output, draft.model_dump(by_alias=True))
        console.print(f"[green]✓[/green] Email draft written to {output}")
        return

    console.print()
    console.print(f"[bold]{escape(draft.video_title)}[/bold]")
    if draft.preview_text:
        console.print(f"[dim]{escape(draft.preview_text)}[/dim]")
    console.print()
    for point in draft.key_points:
        console.print(f"  • {escape(point)}")
    console.print()
    console.print(draft.description, markup=False, highlight=False)
    if draft.company_name:
        console.print(f"\n[dim]{escape(draft.company_name)}[/dim]")
