"""
CLI for frame-translate.

Runs translation sessions against JSON document files and exposes the
markup codec for inspection.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from frame_translate.config import Settings, create_default_config, load_config
from frame_translate.document import FontName, InMemoryDocumentStore
from frame_translate.errors import FrameTranslateError
from frame_translate.logging_config import setup_logging
from frame_translate.markup import decode, encode_runs
from frame_translate.review import (
    ConsoleReviewUI,
    LanguageState,
    ReviewWorkflowManager,
    SessionSummary,
    WorkflowOptions,
)
from frame_translate.styling import RunExtractor
from frame_translate.transport import PayloadChunker, WebhookTransport

app = typer.Typer(
    name="frame-translate",
    help="Translate styled text frames through a webhook service with human review.",
    add_completion=False,
)

console = Console()

_STATE_STYLES = {
    LanguageState.UPLOADED: "green",
    LanguageState.COMPLETED: "green",
    LanguageState.FAILED: "red",
    LanguageState.ABANDONED: "yellow",
}


def _display_config(settings: Settings, config_path: Path | None) -> None:
    """Display the configuration being used."""
    config_source = str(config_path) if config_path else "default (config.yaml or built-in)"

    config_table = Table(show_header=False, box=None, padding=(0, 2))
    config_table.add_column("Key", style="cyan")
    config_table.add_column("Value", style="green")

    config_table.add_row("Config file", config_source)
    config_table.add_row("Project", settings.project.name)
    config_table.add_row("", "")
    config_table.add_row("Transport", "", style="bold cyan")
    config_table.add_row("  Translate URL", settings.transport.translate_url)
    config_table.add_row(
        "  Upload URL", settings.transport.upload_url or "[dim]same as translate[/dim]"
    )
    config_table.add_row(
        "  Auth token",
        "configured" if settings.transport.auth_token else "[yellow]not set[/yellow]",
    )
    config_table.add_row("  Retries", str(settings.transport.max_retries))
    config_table.add_row("", "")
    config_table.add_row("Chunking", "", style="bold cyan")
    config_table.add_row("  Max payload", f"{settings.chunking.max_payload_bytes:,} bytes")
    config_table.add_row("  Batch size", str(settings.chunking.batch_size))
    config_table.add_row("  Response policy", settings.chunking.response_policy.value)
    config_table.add_row("", "")
    config_table.add_row("Export", "", style="bold cyan")
    config_table.add_row("  Languages", ", ".join(settings.export.languages))
    config_table.add_row("  Include image", str(settings.export.include_image))
    config_table.add_row(
        "  Default font", f"{settings.fonts.default_family} {settings.fonts.default_style}"
    )

    console.print(
        Panel(config_table, title="[bold blue]frame-translate[/bold blue]", border_style="blue")
    )


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path and config_path.exists():
        return load_config(config_path)
    return load_config()


def load_document(path: Path) -> InMemoryDocumentStore:
    """Load a document file or exit with an error."""
    if not path.exists():
        console.print(f"[red]Document not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return InMemoryDocumentStore.load(path)
    except FrameTranslateError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None


def _display_summary(summary: SessionSummary) -> None:
    table = Table(title="Languages")
    table.add_column("Language", style="cyan")
    table.add_column("State")
    table.add_column("Duplicate", style="dim")
    table.add_column("Error", style="red")
    for lang, state in summary.states.items():
        style = _STATE_STYLES.get(state, "white")
        table.add_row(
            lang,
            f"[{style}]{state.value}[/{style}]",
            summary.duplicates.get(lang, "-"),
            summary.errors.get(lang, ""),
        )
    console.print(table)


async def _accept_all(manager: ReviewWorkflowManager) -> None:
    """Apply every queued translation as proposed and upload, language by language."""
    while manager.active_language is not None:
        lang = manager.active_language
        for item in list(manager.sessions[lang].queue):
            await manager.apply_edit(item.node_id, lang=lang)
        if not await manager.upload(lang):
            console.print(f"[red]Upload for {lang} failed; leaving it unreviewed[/red]")
            manager.abandon(lang)


@app.command()
def translate(
    document: Path = typer.Argument(..., help="Document JSON file"),
    frame: str | None = typer.Option(
        None, "--frame", "-f", help="Frame id (defaults to the document's selection)"
    ),
    lang: list[str] | None = typer.Option(
        None, "--lang", "-l", help="Target language (repeatable; defaults to config)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Where to save the translated document"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    no_review: bool = typer.Option(
        False, "--no-review", help="Accept every new translation as proposed and upload"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Translate a frame into one or more languages and review the results."""
    settings = get_settings(config)
    setup_logging(settings.logging, verbose=verbose)
    _display_config(settings, config)

    store = load_document(document)
    if frame:
        try:
            store.select([frame])
        except FrameTranslateError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1) from None

    languages = [code.lower() for code in lang] if lang else settings.export.languages
    if not languages:
        console.print("[red]No target languages given[/red]")
        raise typer.Exit(1)

    async def run_session() -> SessionSummary:
        transport = WebhookTransport(
            settings.transport.translate_url,
            settings.transport.upload_url or None,
            auth_token=settings.transport.auth_token or None,
            timeout=settings.transport.timeout_seconds,
            max_retries=settings.transport.max_retries,
            retry_delay=settings.transport.retry_delay,
        )
        ui = ConsoleReviewUI(console)
        async with transport:
            manager = ReviewWorkflowManager(
                store,
                transport,
                ui,
                chunker=PayloadChunker(
                    transport,
                    max_bytes=settings.chunking.max_payload_bytes,
                    batch_size=settings.chunking.batch_size,
                    policy=settings.chunking.response_policy,
                ),
                options=WorkflowOptions(
                    include_image=settings.export.include_image,
                    duplicate_spacing=settings.export.duplicate_spacing,
                    default_font=FontName(
                        settings.fonts.default_family, settings.fonts.default_style
                    ),
                    em_base=settings.fonts.em_base_px,
                ),
            )
            await manager.run(languages)
            if no_review:
                await _accept_all(manager)
            else:
                await ui.run(manager)
            return manager.summary()

    try:
        summary = asyncio.run(run_session())
    except FrameTranslateError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    _display_summary(summary)

    out_path = output or document.with_name(f"{document.stem}.translated.json")
    store.save(out_path)
    console.print(f"[green]Document saved to: {out_path}[/green]")

    if summary.failed:
        raise typer.Exit(1)


@app.command()
def encode(
    document: Path = typer.Argument(..., help="Document JSON file"),
    node_id: str = typer.Argument(..., help="Text node id"),
    as_json: bool = typer.Option(False, "--json", help="Print the style runs as JSON instead"),
) -> None:
    """Print the markup of a text node."""
    store = load_document(document)
    try:
        runs = RunExtractor(store).extract(node_id)
    except FrameTranslateError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    if as_json:
        data = [
            {"text": run.text, "style": run.style.to_dict() if run.style else None}
            for run in runs
        ]
        console.print_json(json.dumps(data, ensure_ascii=False))
        return
    console.print(encode_runs(runs), markup=False, highlight=False, soft_wrap=True)


@app.command(name="decode")
def decode_markup(
    markup: str = typer.Argument(..., help="Markup string"),
    as_json: bool = typer.Option(False, "--json", help="Print the segments as JSON"),
) -> None:
    """Show the styled segments of a markup string."""
    segments = decode(markup)
    if as_json:
        console.print_json(json.dumps([s.to_dict() for s in segments], ensure_ascii=False))
        return
    if not segments:
        console.print("[yellow]No text[/yellow]")
        return

    table = Table(title="Segments")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Text", style="green")
    table.add_column("Style", style="cyan")
    for number, segment in enumerate(segments, 1):
        table.add_row(str(number), repr(segment.text), segment.style.to_css() or "-")
    console.print(table)


@app.command()
def init(
    output_path: Path = typer.Option(
        Path("config.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Generate a default configuration file."""
    if output_path.exists() and not force:
        console.print(f"[yellow]{output_path} already exists (use --force)[/yellow]")
        raise typer.Exit(1)
    create_default_config(output_path)
    console.print(f"[green]Created configuration file: {output_path}[/green]")


@app.command(name="config")
def show_config(
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the effective configuration."""
    _display_config(get_settings(config), config)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
