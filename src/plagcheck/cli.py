"""Command line interface for plagcheck."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from plagcheck.analysis.strategies import ContentAnalyzerType
from plagcheck.config import DEFAULT_STRATEGIES, AppConfig
from plagcheck.errors import ConfigurationError, IndexIOError, IndexWriteError, StrategyExecutionError
from plagcheck.index.checker import Checker, CheckResult
from plagcheck.index.indexer import Indexer
from plagcheck.utils.files import iter_article_paths
from plagcheck.web.app import app as web_app


console = Console()
app = typer.Typer(help="plagcheck - fingerprint based passage reuse detection")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_index_root(index_root: Path) -> None:
    index_root.mkdir(parents=True, exist_ok=True)


def _build_config(index_root: Optional[Path], strategies: Optional[List[str]], **kwargs) -> AppConfig:
    return AppConfig(
        index_root=index_root,
        strategies=tuple(strategies) if strategies else DEFAULT_STRATEGIES,
        **kwargs,
    )


def _print_result(result: CheckResult, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    for entry in result:
        if entry.error is not None:
            console.print(f"[red]{entry.strategy.value}: failed ({entry.error})[/red]")
            continue
        if not entry.matches:
            console.print(f"[yellow]{entry.strategy.value}: no matches[/yellow]")
            continue

        table = Table(title=entry.strategy.value, show_header=True, header_style="bold magenta")
        table.add_column("Article")
        table.add_column("Paragraph")
        table.add_column("Position")
        table.add_column("Checkpoint")
        for location in entry.matches:
            table.add_row(
                location.article,
                str(location.paragraph),
                str(location.position),
                (location.text or "")[:120],
            )
        console.print(table)


@app.command()
def index(
    inputs: List[Path] = typer.Argument(
        ..., help="Files or folders with articles to index.", resolve_path=True
    ),
    index_root: Path = typer.Option(None, "--index-root", help="Directory holding the indexes"),
    strategy: List[str] = typer.Option(
        None, "--strategy", "-s", help="Content analyzer name (repeatable, comma separated)"
    ),
    window: int = typer.Option(AppConfig().window, help="Winnowing window, 1 keeps every fingerprint"),
    no_text: bool = typer.Option(False, "--no-text", help="Do not store checkpoint text"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build one fingerprint index per strategy."""
    _setup_logging(verbose)
    config = _build_config(index_root, strategy, window=window, store_text=not no_text)
    if config.window < 1:
        raise typer.BadParameter("window must be >= 1")
    try:
        strategies = config.analyzer_types()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    resolved_root = config.resolve_index_root(Path.cwd())
    if not list(iter_article_paths(inputs)):
        console.print("[yellow]No articles found.[/yellow]")
        return

    _ensure_index_root(resolved_root)
    console.print(f"Indexing into [bold]{resolved_root}[/bold]...")
    indexer = Indexer(
        strategies, resolved_root, window=config.window, store_text=config.store_text
    )
    try:
        stats = indexer.index(inputs)
    except IndexWriteError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"Articles: {stats.articles}, paragraphs: {stats.paragraphs}, "
        f"duplicates: {stats.duplicates}, failed: {stats.failed}"
    )
    for name, count in stats.fingerprints.items():
        console.print(f"  {name}: {count} fingerprints")


@app.command()
def check(
    paragraph: Optional[str] = typer.Argument(
        None, help="Paragraph to check. Without it, one paragraph is read per stdin line."
    ),
    index_root: Path = typer.Option(None, "--index-root", help="Directory holding the indexes"),
    strategy: List[str] = typer.Option(
        None, "--strategy", "-s", help="Content analyzer name (repeatable, comma separated)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    partial: bool = typer.Option(
        False, "--partial", help="Keep other strategies' results when one strategy fails"
    ),
    timeout: Optional[float] = typer.Option(None, help="Per-query deadline in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Check paragraphs against the indexed corpus."""
    _setup_logging(verbose)
    config = _build_config(
        index_root, strategy, failure_policy="partial" if partial else "fail-fast"
    )
    resolved_root = config.resolve_index_root(Path.cwd())

    try:
        checker = Checker.from_index_root(
            resolved_root,
            config.strategies,
            failure_policy=config.policy(),
            max_workers=config.max_workers,
        )
    except (ConfigurationError, IndexIOError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    with checker:
        if paragraph is not None:
            try:
                _print_result(checker.check(paragraph, timeout=timeout), as_json)
            except StrategyExecutionError as exc:
                console.print(f"[red]{exc}[/red]")
                raise typer.Exit(code=1) from exc
            return

        for line in sys.stdin:
            line = line.rstrip("\r\n")
            if line == "":
                break
            try:
                result = checker.check(line, timeout=timeout)
            except StrategyExecutionError as exc:
                console.print(f"[red]{exc}[/red]")
                continue
            _print_result(result, as_json)


@app.command()
def strategies() -> None:
    """List the available content analyzers."""
    for member in ContentAnalyzerType:
        typer.echo(member.value)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    index_root: Path = typer.Option(None, "--index-root", help="Directory holding the indexes"),
) -> None:
    """Start the HTTP service."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = AppConfig(index_root=index_root)
    resolved_root = config.resolve_index_root(Path.cwd())
    if not resolved_root.exists():
        console.print("[yellow]Warning: index root not found, checks will fail until indexes are built.[/yellow]")

    web_app.state.index_root = resolved_root
    console.print(f"Starting HTTP service on http://{host}:{port} (indexes: {resolved_root})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
