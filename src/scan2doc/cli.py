"""scan2doc CLI."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from scan2doc.config import settings
from scan2doc.errors import ConfigurationError, PipelineCancelled
from scan2doc.models import FolderBatch, FolderStatus
from scan2doc.pipeline import PipelineOrchestrator, ingest, scan_directory
from scan2doc.processing_log import ProcessingLog

app = typer.Typer(
    name="scan2doc",
    help="Assemble folders of scanned pages into AI-processed documents",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    FolderStatus.PENDING: "dim",
    FolderStatus.PROCESSING: "yellow",
    FolderStatus.COMPLETED: "green",
    FolderStatus.ERROR: "red",
}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _parse_rotation(value: str) -> tuple[str, int]:
    name, sep, degrees = value.rpartition(":")
    if not sep or not name:
        raise typer.BadParameter(f"Expected NAME:DEGREES, got {value!r}")
    try:
        return name, int(degrees)
    except ValueError as exc:
        raise typer.BadParameter(f"Rotation must be an integer, got {degrees!r}") from exc


def _apply_selection(
    batches: list[FolderBatch],
    exclude: list[str],
    rotate: list[str],
) -> list[FolderBatch]:
    """Apply file exclusions and pending rotations by display name."""
    rotations = dict(_parse_rotation(value) for value in rotate)
    updated = []
    for batch in batches:
        for item in batch.items:
            if item.name in exclude:
                batch = batch.replace_item(item.with_included(False))
            if item.name in rotations:
                current = batch.find(item.name)
                try:
                    batch = batch.replace_item(current.with_rotation(rotations[item.name]))
                except ValueError as exc:
                    raise typer.BadParameter(str(exc)) from exc
        updated.append(batch)
    return updated


def _print_batches(batches: list[FolderBatch]) -> None:
    table = Table(title="Folders")
    table.add_column("Folder", style="bold")
    table.add_column("File")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Rotation", justify="right")
    table.add_column("Status")

    for batch in batches:
        style = STATUS_STYLES[batch.status]
        for index, item in enumerate(batch.items):
            name = item.name if item.included else f"[strike]{item.name}[/strike]"
            table.add_row(
                batch.folder_name if index == 0 else "",
                name,
                item.kind.value,
                f"{item.size:,}",
                f"{item.rotation}°" if item.rotation else "",
                f"[{style}]{batch.status.value}[/{style}]" if index == 0 else "",
            )
    console.print(table)


@app.command()
def scan(
    input_dir: Path = typer.Argument(..., help="Directory containing page folders"),
) -> None:
    """List the folders and files that would be processed."""
    batches = ingest(scan_directory(input_dir))
    if not batches:
        console.print("[yellow]No images or PDFs found[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[bold blue]Loaded {len(batches)} folder(s)[/bold blue]")
    _print_batches(batches)


@app.command()
def process(
    input_dir: Path = typer.Argument(..., help="Directory containing page folders"),
    output_dir: Path = typer.Option(Path("./output"), help="Output directory"),
    language: str = typer.Option(
        settings.target_language, help="Target language, or 'Original' to keep the source text"
    ),
    summary: bool = typer.Option(settings.generate_summary, help="Prepend an AI summary"),
    exclude: list[str] = typer.Option([], help="File name to leave out (repeatable)"),
    rotate: list[str] = typer.Option([], help="Rotate an image before analysis, NAME:DEGREES"),
) -> None:
    """Process every folder into one document each."""
    from scan2doc.services.docx_writer import DocxWriter
    from scan2doc.services.llm import build_services

    _setup_logging(settings.log_level)

    batches = _apply_selection(ingest(scan_directory(input_dir)), exclude, rotate)
    console.print(f"[bold blue]Processing:[/bold blue] {input_dir}")
    console.print(f"[dim]Output directory: {output_dir}, language: {language}[/dim]")

    try:
        services = build_services(settings)
        orchestrator = PipelineOrchestrator(
            analyzer=services.analyzer,
            ranker=services.ranker,
            writer=DocxWriter(),
            summarizer=services.summarizer,
            processing_log=ProcessingLog(),
            language=language,
            generate_summary=summary,
        )
        result = asyncio.run(orchestrator.run(batches))
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=2)
    except (PipelineCancelled, KeyboardInterrupt):
        console.print("[yellow]Processing cancelled[/yellow]")
        raise typer.Exit(code=130)

    output_dir.mkdir(parents=True, exist_ok=True)
    for name, data in result.artifacts.items():
        path = output_dir / name
        path.write_bytes(data)
        console.print(f"[green]Wrote[/green] {path}")

    _print_batches(result.batches)
    for report in result.reports:
        for outcome in report.failed_items:
            console.print(f"[red]{report.folder_name}/{outcome.name}:[/red] {outcome.error_message}")

    if any(b.status == FolderStatus.ERROR for b in result.batches):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
