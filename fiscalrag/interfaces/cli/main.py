"""
CLI Main - Typer-based command-line interface.

Usage:
    fiscalrag search "taux de l'IS" --version 2026
    fiscalrag intent "Quelle différence entre 2025 et 2026 pour la TVA ?"
    fiscalrag ask "Quel est le taux de l'IBA ?"
    fiscalrag check-rules
    fiscalrag serve
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from fiscalrag.config import CodeVersion, FiscalRAGError

app = typer.Typer(
    name="fiscalrag",
    help="FiscalRAG - Recherche hybride dans le CGI du Congo (2025/2026)",
    add_completion=False,
)
console = Console()

RULE_COLUMNS = ("rulesets", "keywords", "synonyms", "articles", "direct_mappings", "routing_rules")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_version(value: str | None) -> CodeVersion | None:
    if value is None:
        return None
    try:
        return CodeVersion(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Unknown edition {value!r} (expected 2025 or 2026)")
        raise typer.Exit(1)


async def _load_orchestrator():
    """Build the orchestrator and load vector partitions."""
    from fiscalrag.interfaces.api.deps import get_orchestrator, get_vector_store

    loaded = await get_vector_store().load()
    if not loaded:
        console.print("[yellow]No vector partition found; keyword and routing rules only.[/yellow]")
    return get_orchestrator()


async def _flush() -> None:
    from fiscalrag.interfaces.api.deps import get_vector_searcher

    await get_vector_searcher().flush()


@app.command()
def search(
    query: str = typer.Argument(..., help="Question or keywords"),
    limit: int = typer.Option(8, "--limit", "-n", help="Results per edition"),
    version: str | None = typer.Option(None, "--version", help="Force edition (2025 or 2026)"),
) -> None:
    """Show ranked articles for a question, without generating an answer."""
    asyncio.run(_search_async(query, limit, _parse_version(version)))


async def _search_async(query: str, limit: int, version: CodeVersion | None) -> None:
    """Async search implementation."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Searching...", total=None)
        try:
            orchestrator = await _load_orchestrator()
            responses = await orchestrator.search(query, limit, version)
            await _flush()
        except FiscalRAGError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)

    for response in responses:
        table = Table(title=f"CGI {response.version.value}")
        table.add_column("#", style="dim")
        table.add_column("Article", style="cyan")
        table.add_column("Match")
        table.add_column("Priority")
        table.add_column("Score", style="green")
        table.add_column("Title")

        for rank, result in enumerate(response.results, 1):
            table.add_row(
                str(rank),
                result.article_id,
                result.match_kind.value,
                str(result.priority),
                f"{result.score:.3f}",
                result.article.title if result.article else "",
            )
        console.print(table)

        if response.override:
            console.print(
                f"[dim]Routing rule {response.override.rule_id} -> "
                f"{response.override.article_id}[/dim]"
            )
        if not response.results:
            console.print("[yellow]No matching article.[/yellow]")


@app.command()
def intent(
    query: str = typer.Argument(..., help="Question to analyze"),
) -> None:
    """Explain which edition(s) a question would be answered from."""
    from fiscalrag.config import get_settings, load_rule_catalog
    from fiscalrag.domains.orchestration import (
        ConfidencePolicy,
        IntentAnalyzer,
        VersionFallbackPolicy,
    )

    settings = get_settings()
    try:
        rules = load_rule_catalog(settings.rules_dir)
    except FiscalRAGError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    analyzer = IntentAnalyzer(rules.intent, ConfidencePolicy.from_settings(settings))
    result = analyzer.analyze(query)

    if result.is_comparison:
        target = "[magenta]comparison 2025 / 2026[/magenta]"
    elif result.target_version:
        target = f"[cyan]{result.target_version.value}[/cyan]"
    else:
        fallback = VersionFallbackPolicy(cutoff=settings.version_cutoff_date).resolve()
        target = f"[yellow]none (fallback {fallback.value})[/yellow]"

    console.print(
        Panel(
            f"[bold]Edition:[/bold] {target}\n"
            f"[bold]Domain:[/bold] {result.domain.value if result.domain else '-'}\n"
            f"[bold]Confidence:[/bold] {result.confidence:.2f}\n"
            f"[bold]Cues:[/bold] {', '.join(result.matched_cues) or '-'}",
            title="Intent",
        )
    )


@app.command()
def ask(
    query: str = typer.Argument(..., help="Tax question"),
    show_sources: bool = typer.Option(True, "--sources/--no-sources", help="List citations"),
) -> None:
    """Answer a question from the right edition (or compare both)."""
    asyncio.run(_ask_async(query, show_sources))


async def _ask_async(query: str, show_sources: bool) -> None:
    """Async answer implementation."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Thinking...", total=None)
        try:
            orchestrator = await _load_orchestrator()
            response = await orchestrator.process(query)
            await _flush()
        except FiscalRAGError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)

    editions = " / ".join(f"CGI {v.value}" for v in response.versions)
    console.print(Panel(response.answer, title=editions))

    if show_sources and response.sources:
        console.print("\n[bold]Sources:[/bold]")
        for source in response.sources:
            title = f" - {source.title}" if source.title else ""
            console.print(f"  {source.numero} (CGI {source.version.value}){title}")

    console.print(
        f"\n[dim]Confidence: {response.intent.confidence:.0%} - "
        f"{response.processing_time_ms:.0f}ms[/dim]"
    )


@app.command("check-rules")
def check_rules(
    rules_dir: Path | None = typer.Option(None, "--rules", "-r", help="Rule tables directory"),
) -> None:
    """Validate keyword, routing and intent tables."""
    from fiscalrag.config import get_settings, load_rule_catalog

    try:
        rules = load_rule_catalog(rules_dir or get_settings().rules_dir)
    except FiscalRAGError as e:
        console.print(f"[red]Invalid rule tables:[/red] {e.message}")
        for error in e.details.get("errors", []):
            console.print(f"  [red]-[/red] {error['loc']}: {error['msg']}")
        raise typer.Exit(1)

    table = Table(title="Rule tables")
    table.add_column("Edition", style="cyan")
    for column in RULE_COLUMNS:
        table.add_column(column.replace("_", " ").title(), style="green")

    for edition, sizes in rules.stats().items():
        table.add_row(edition, *(str(sizes[c]) for c in RULE_COLUMNS))

    console.print(table)
    console.print("[green]Rule tables OK[/green]")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from fiscalrag.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting FiscalRAG API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "fiscalrag.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from fiscalrag import __version__

    console.print(f"FiscalRAG v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
