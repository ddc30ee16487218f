"""Command-line interface for category-diffusion."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from category_diffusion import __version__
from category_diffusion.cache import ResultCache, ReviewedStore, next_unreviewed
from category_diffusion.config import AppConfig
from category_diffusion.models import RunStatus
from category_diffusion.pipeline import Pipeline
from category_diffusion.utils.titles import FILE_PREFIX, ensure_prefix

app = typer.Typer(
    name="category-diffusion",
    help="Suggest specific subcategories for files in an overfull wiki category.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"category-diffusion version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Category diffusion helper for Wikimedia Commons."""
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
    # httpx logs every request at INFO/DEBUG
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.INFO if verbose else logging.WARNING)


def _load_config(
    category: str,
    config_path: Optional[Path],
    cache_dir: Optional[Path] = None,
) -> AppConfig:
    try:
        if config_path:
            config = AppConfig.from_toml(config_path, category=category)
        else:
            config = AppConfig(category=category)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    if cache_dir is not None:
        config.cache = config.cache.model_copy(update={"directory": cache_dir})
    return config


@app.command()
def analyze(
    category: str = typer.Argument(..., help="Category to diffuse, e.g. 'Category:Bridges'"),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        help="Maximum subcategory tree depth",
    ),
    max_nodes: Optional[int] = typer.Option(
        None,
        "--max-nodes",
        help="Stop crawling after this many subcategories",
    ),
    max_files: Optional[int] = typer.Option(
        None,
        "--max-files",
        help="Maximum files to analyse from the category",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "-b",
        help="Files per model request",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Model identifier passed to the proxy",
    ),
    proxy_url: Optional[str] = typer.Option(
        None,
        "--proxy-url",
        help="Chat-completions proxy URL",
    ),
    cache_dir: Optional[Path] = typer.Option(
        None,
        "--cache-dir",
        help="Directory for cached results",
    ),
    use_cache: bool = typer.Option(
        True,
        "--cache/--no-cache",
        help="Read and write cached results",
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh",
        "-r",
        help="Delete any cached result and analyse again",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """
    Crawl a category's subtree and ask the model for subcategory suggestions.

    Examples:

        category-diffusion analyze "Category:Bridges in Paris"

        category-diffusion analyze Bridges_in_Paris --max-depth 3 --batch-size 10

        category-diffusion analyze "Category:Bridges in Paris" --refresh -v
    """
    _configure_logging(verbose)
    config = _load_config(category, config_path, cache_dir)

    crawl_updates = {
        key: value
        for key, value in (
            ("max_tree_depth", max_depth),
            ("max_tree_nodes", max_nodes),
            ("max_files_per_category", max_files),
        )
        if value is not None
    }
    if crawl_updates:
        config.crawl = config.crawl.model_validate(
            {**config.crawl.model_dump(), **crawl_updates}
        )

    llm_updates = {
        key: value
        for key, value in (
            ("files_per_batch", batch_size),
            ("model", model),
            ("proxy_url", proxy_url),
        )
        if value is not None
    }
    if llm_updates:
        config.llm = config.llm.model_validate({**config.llm.model_dump(), **llm_updates})

    if not use_cache:
        config.cache = config.cache.model_copy(update={"enabled": False})
    config.verbose = verbose

    pipeline = Pipeline(config, console)

    try:
        run = asyncio.run(pipeline.start(refresh=refresh))
    except KeyboardInterrupt:
        console.print("\n[yellow]Analysis cancelled.[/yellow]")
        raise typer.Exit(130)

    if run.status == RunStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def show(
    category: str = typer.Argument(..., help="Previously analysed category"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file"),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Directory for cached results"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include reviewed files"),
):
    """Show cached suggestions for a category."""
    config = _load_config(category, config_path, cache_dir)

    async def _load():
        entry = await ResultCache(config.cache).load(config.category)
        reviewed = await ReviewedStore(config.cache, config.category).load()
        return entry, reviewed

    entry, reviewed = asyncio.run(_load())
    if entry is None:
        console.print(f"[yellow]No cached analysis for {config.category}.[/yellow]")
        console.print(f"[dim]Run: category-diffusion analyze \"{config.category}\"[/dim]")
        raise typer.Exit(1)

    table = Table(title=f"Suggestions for {config.category}")
    table.add_column("File", style="cyan")
    table.add_column("Current categories")
    table.add_column("Suggested", style="green")
    table.add_column("Reviewed", justify="center")

    for title, picks in entry.suggestions.items():
        if title in reviewed and not show_all:
            continue
        record = entry.records.get(title)
        current = ", ".join(record.categories) if record else ""
        table.add_row(
            title,
            current,
            ", ".join(picks) or "[dim](none)[/dim]",
            "Yes" if title in reviewed else "",
        )

    console.print(table)
    console.print(
        f"[dim]{len(entry.vocabulary)} subcategories, {len(entry.suggestions)} files,"
        f" {len(reviewed)} reviewed[/dim]"
    )


@app.command()
def review(
    category: str = typer.Argument(..., help="Previously analysed category"),
    file_title: str = typer.Argument(..., help="File to mark as reviewed"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file"),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Directory for cached results"),
):
    """Mark a file as reviewed and show the next one with suggestions."""
    config = _load_config(category, config_path, cache_dir)
    title = ensure_prefix(file_title.replace("_", " ").strip(), FILE_PREFIX)

    async def _mark():
        entry = await ResultCache(config.cache).load(config.category)
        store = ReviewedStore(config.cache, config.category)
        await store.load()
        await store.mark(title)
        return entry, store.reviewed

    entry, reviewed = asyncio.run(_mark())
    console.print(f"[green]Marked {title} as reviewed.[/green]")

    if entry is None:
        return
    upcoming = next_unreviewed(entry.suggestions, reviewed, after=title)
    if upcoming:
        console.print(f"Next: [cyan]{upcoming}[/cyan] → {', '.join(entry.suggestions[upcoming])}")
    else:
        console.print("[dim]All files with suggestions have been reviewed.[/dim]")


@app.command()
def clear(
    category: str = typer.Argument(..., help="Category whose cached data to remove"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file"),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Directory for cached results"),
):
    """Remove cached suggestions and review progress for a category."""
    config = _load_config(category, config_path, cache_dir)

    async def _clear() -> bool:
        removed = await ResultCache(config.cache).clear(config.category)
        await ReviewedStore(config.cache, config.category).clear()
        return removed

    if asyncio.run(_clear()):
        console.print(f"[green]Cleared cached analysis of {config.category}.[/green]")
    else:
        console.print(f"[yellow]No cached analysis for {config.category}.[/yellow]")


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("category-diffusion.toml"), help="Where to write the file"),
    category: str = typer.Option("Category:Example", "--category", help="Default category"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write a TOML configuration file with default settings."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(1)
    path.write_text(AppConfig(category=category).to_toml(), encoding="utf-8")
    console.print(f"[green]Written to {path}[/green]")


if __name__ == "__main__":
    app()
