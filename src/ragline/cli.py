# src/ragline/cli.py
"""Command-line interface for ragline.

A thin Typer wrapper around the Ragline facade. Each command:
1. Parses args (via Typer)
2. Builds a Ragline instance from ragline.yaml / RAGLINE_* settings
3. Runs the async operation
4. Renders results with Rich
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ragline import __version__
from ragline.config import ConfigError, create_ragline, get_ragline_config
from ragline.exceptions import RaglineError
from ragline.ragline import Ragline

T = TypeVar("T")

app = typer.Typer(
    name="ragline",
    help="ragline - chunk, embed and index documents for retrieval.",
    no_args_is_help=True,
)
console = Console()

DATA_DIR_OPTION = typer.Option(
    None, "--data-dir", "-d", help="Data directory (default: from config)"
)
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to config file")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # LiteLLM and Chroma are noisy at INFO
    for name in ("LiteLLM", "httpx", "chromadb"):
        logging.getLogger(name).setLevel(logging.WARNING)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"ragline {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """ragline - document ingestion and retrieval."""
    configure_logging(verbose)


def _open(data_dir: str | None, config_file: str | None) -> Ragline:
    rag = create_ragline(data_dir, config_file)
    if isinstance(rag, ConfigError):
        console.print(f"[red]Error: {escape(rag.message)}[/red]")
        if rag.suggestion:
            console.print(f"[dim]{rag.suggestion}[/dim]")
        raise typer.Exit(1)
    return rag


def _run(
    data_dir: str | None,
    config_file: str | None,
    operation: Callable[[Ragline], Awaitable[T]],
) -> T:
    """Run an async operation against a Ragline instance, handling errors."""
    rag = _open(data_dir, config_file)
    try:
        return asyncio.run(operation(rag))
    except (RaglineError, ValueError) as e:
        # ValueError covers invalid ids and pydantic validation of stored settings
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    finally:
        rag.close()


@app.command()
def ingest(
    path: Path = typer.Argument(..., help="File to ingest", exists=True, dir_okay=False),
    document_id: str = typer.Option(None, "--id", help="Document id (default: generated)"),
    content_type: str = typer.Option(
        None, "--content-type", help="MIME type (default: guessed from the filename)"
    ),
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Register a file, then chunk, embed and index it."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error: could not read {escape(str(path))}: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    resolved_type = content_type or mimetypes.guess_type(path.name)[0] or "text/plain"

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.fields[stage]:>10}", justify="right"),
        BarColumn(bar_width=20),
        TextColumn("{task.description}", style="dim"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("", total=None, stage="Starting")

        def on_progress(stage: str, current: int, total: int, message: str) -> None:
            progress.update(
                task,
                stage=stage.capitalize(),
                description=message,
                total=total or None,
                completed=current,
            )

        async def run(rag: Ragline) -> tuple[str, int, int]:
            record = await rag.register_document(
                path.name,
                content_type=resolved_type,
                size=path.stat().st_size,
                url=str(path.resolve()),
                document_id=document_id,
            )
            result = await rag.process_document(record.id, content, on_progress=on_progress)
            return record.id, len(result.chunks), len(result.vectors)

        doc_id, chunks, vectors = _run(data_dir, config_file, run)

    console.print(f"[green]Ingested {path.name} as {doc_id}[/green]")
    console.print(f"[green]{chunks} chunks, {vectors} vectors indexed[/green]")


@app.command()
def status(
    document_id: str = typer.Argument(None, help="Document id (default: all documents)"),
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Show processing status of one or all documents."""

    async def run(rag: Ragline) -> list:
        if document_id:
            return [await rag.get_document(document_id)]
        return await rag.list_documents()

    documents = _run(data_dir, config_file, run)
    if not documents:
        console.print("[dim]No documents registered. Run 'ragline ingest' first.[/dim]")
        raise typer.Exit(0)

    table = Table(title=f"Documents ({len(documents)})")
    table.add_column("Id", style="cyan")
    table.add_column("Filename")
    table.add_column("Status", style="green")
    table.add_column("Chunks", justify="right")
    table.add_column("Vectors", justify="right")
    table.add_column("Error", style="red")

    for doc in documents:
        table.add_row(
            doc.id,
            doc.filename,
            doc.status.value,
            "" if doc.chunk_count is None else str(doc.chunk_count),
            "" if doc.vector_count is None else str(doc.vector_count),
            doc.error or "",
        )
    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    k: int = typer.Option(None, "--k", "-k", help="Number of matches to request"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Search indexed documents."""
    results = _run(data_dir, config_file, lambda rag: rag.search(query, top_k=k))

    if as_json:
        typer.echo(json.dumps([r.model_dump() for r in results], indent=2))
        return

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        raise typer.Exit(0)

    for i, r in enumerate(results, 1):
        source = r.metadata.get("source", "Unknown source")
        section = r.metadata.get("section")
        label = f"{source} / {section}" if section else source
        console.print(f"  [{i}] [cyan]{label}[/cyan] [dim](score: {r.score:.3f})[/dim]")
        preview = r.text[:100].replace("\n", " ")
        if len(r.text) > 100:
            preview += "..."
        console.print(f"      [dim]{preview}[/dim]")


@app.command()
def delete(
    document_id: str = typer.Argument(..., help="Document id to delete"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Delete a document, its status and all of its vectors."""
    if not force and not typer.confirm(f"Delete document {document_id}?"):
        console.print("Cancelled.")
        raise typer.Exit(0)

    deleted = _run(data_dir, config_file, lambda rag: rag.delete_document(document_id))
    console.print(f"[green]Deleted {document_id} ({deleted} vectors)[/green]")


@app.command()
def stats(
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Show index statistics and document counts."""
    health = _run(data_dir, config_file, lambda rag: rag.health())

    table = Table(title="ragline Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    index = health["index"]
    table.add_row("Embedding model", health["embedding_model"])
    table.add_row("Vectors", str(index["total_vector_count"]))
    table.add_row("Dimension", str(index["dimension"] or "-"))
    for namespace, count in sorted(index["namespaces"].items()):
        table.add_row(f"  namespace '{namespace}'", str(count))
    table.add_row("Documents", str(health["documents"]["total"]))
    for state, count in sorted(health["documents"]["by_status"].items()):
        table.add_row(f"  {state}", str(count))
    console.print(table)


@app.command()
def config(
    data_dir: str = DATA_DIR_OPTION,
    config_file: str = CONFIG_OPTION,
) -> None:
    """Show the effective configuration."""
    resolved = get_ragline_config(data_dir, config_file)
    if isinstance(resolved, ConfigError):
        console.print(f"[red]Error: {escape(resolved.message)}[/red]")
        raise typer.Exit(1)

    table = Table(title="ragline Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("config_file", str(resolved.config_path or "(none)"))
    table.add_row("data_dir", resolved.data_dir)
    for name, value in resolved.settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
