"""Main pipeline that coordinates crawl, metadata, model batches and caching."""

import logging

from rich.console import Console
from rich.status import Status

from category_diffusion.cache import ResultCache
from category_diffusion.config import AppConfig
from category_diffusion.discovery import TreeCrawler
from category_diffusion.errors import PipelineError, WikiAPIError
from category_diffusion.extractor import MetadataFetcher
from category_diffusion.llm import BatchOrchestrator, LLMClient
from category_diffusion.models import PipelineRun, RunStatus
from category_diffusion.utils.titles import CATEGORY_PREFIX, strip_prefix
from category_diffusion.wiki import MemberKind, PagedLister, WikiClient

logger = logging.getLogger(__name__)


class Pipeline:
    """Runs one analysis of ``config.category`` at a time.

    Stages are strictly sequential: crawl, file listing, metadata, model
    batches. Failures of a single expansion, metadata chunk or batch are
    absorbed by the stage that owns them; anything else ends the run in the
    ``error`` state.
    """

    def __init__(
        self,
        config: AppConfig,
        console: Console | None = None,
        wiki_client: WikiClient | None = None,
        llm_client: LLMClient | None = None,
        cache: ResultCache | None = None,
    ):
        self.config = config
        self.console = console or Console()
        self.run = PipelineRun(category=config.category)
        self._wiki_client = wiki_client
        self._llm_client = llm_client
        self.cache = cache or ResultCache(config.cache)
        self._status: Status | None = None

    async def start(self, refresh: bool = False) -> PipelineRun:
        """Analyse the category, or adopt a cached result.

        With ``refresh`` the cached entry is deleted first, so a refreshed run
        that fails leaves no stale result behind.

        Calling this while a run is in progress returns the current run
        without starting another.
        """
        run = self.run
        if run.status == RunStatus.RUNNING:
            logger.info("Analysis of %s already running", run.category)
            return run

        run.begin()

        if refresh:
            if self.cache.config.enabled:
                await self.cache.clear(run.category)
        else:
            cached = await self.cache.load(run.category)
            if cached is not None:
                run.restore(cached)
                self.console.print(
                    f"[green]Loaded cached analysis of {run.category}[/green]"
                    f" [dim]({self.cache.path_for(run.category)})[/dim]"
                )
                self._print_summary(run)
                return run

        with self.console.status("Crawling subcategory tree…") as status:
            self._status = status
            try:
                await self._execute(run)
            except Exception as e:
                logger.debug("Analysis of %s failed", run.category, exc_info=True)
                run.fail(f"Error: {str(e) or 'Analysis failed.'}")
            finally:
                self._status = None

        if run.status == RunStatus.DONE:
            await self.cache.save(run.category, run.to_cache_entry())

        self._print_summary(run)
        return run

    async def _execute(self, run: PipelineRun) -> None:
        cfg = self.config
        wiki = self._wiki_client or WikiClient(cfg.wiki)

        try:
            async with wiki:
                lister = PagedLister(wiki, cfg.wiki.page_size)

                self._update(run, "Crawling subcategory tree…")
                crawler = TreeCrawler(
                    lister,
                    cfg.crawl.max_tree_depth,
                    cfg.crawl.max_tree_nodes,
                    progress=lambda msg: self._update(run, msg),
                )
                subcat_titles = await crawler.crawl(run.category)
                run.failed_expansions = len(crawler.failed)

                if not subcat_titles:
                    run.finish("No subcategories found.")
                    return

                run.vocabulary = [strip_prefix(t, CATEGORY_PREFIX) for t in subcat_titles]
                self._update(run, f"Found {len(run.vocabulary)} subcategories. Fetching files…")

                try:
                    file_titles = await lister.list_titles(
                        run.category,
                        MemberKind.FILE,
                        page_cap=cfg.crawl.max_files_per_category,
                    )
                except WikiAPIError as e:
                    raise PipelineError(f"Could not list files of {run.category}: {e}") from e

                run.file_count = len(file_titles)
                if not file_titles:
                    run.finish("No files found in category.")
                    return

                self._update(run, f"Fetching metadata for {len(file_titles)} files…")
                fetcher = MetadataFetcher(
                    wiki,
                    cfg.wiki.titles_per_query,
                    progress=lambda msg: self._update(run, msg),
                )
                run.records = await fetcher.fetch_metadata(file_titles)
                run.failed_chunks = fetcher.failed_chunks
        finally:
            run.wiki_requests = wiki.request_count

        llm = self._llm_client or LLMClient(cfg.llm)
        async with llm:
            orchestrator = BatchOrchestrator(
                llm,
                run.category,
                files_per_batch=cfg.llm.files_per_batch,
                max_depth=cfg.crawl.max_tree_depth,
                progress=lambda msg: self._update(run, msg),
            )
            run.suggestions = await orchestrator.suggest(
                run.vocabulary, run.records, file_titles
            )
            run.failed_batches = orchestrator.failed_batches
            run.llm_calls = llm.call_count

        with_picks = sum(1 for picks in run.suggestions.values() if picks)
        run.finish(f"Done: {with_picks}/{len(run.suggestions)} files have suggestions.")

    def _update(self, run: PipelineRun, message: str) -> None:
        run.status_message = message
        if self._status:
            self._status.update(message)
        if self.config.verbose:
            self.console.print(f"[dim]{message}[/dim]")

    def _print_summary(self, run: PipelineRun) -> None:
        """Print a short post-run report."""
        self.console.print()
        if run.status == RunStatus.ERROR:
            self.console.print(f"[bold red]{run.status_message}[/bold red]")
            return

        self.console.print(f"[bold]{run.status_message}[/bold]")
        self.console.print()
        self.console.print(f"  Category:        {run.category}")
        self.console.print(f"  Subcategories:   [green]{len(run.vocabulary)}[/green]")
        self.console.print(f"  Files:           {len(run.suggestions) or run.file_count}")
        self.console.print(f"  With metadata:   {len(run.records)}")
        with_picks = sum(1 for picks in run.suggestions.values() if picks)
        self.console.print(f"  Suggested:       [green]{with_picks}[/green]")

        if run.from_cache:
            return

        failures = [
            ("Failed expansions", run.failed_expansions),
            ("Failed metadata chunks", run.failed_chunks),
            ("Failed LLM batches", run.failed_batches),
        ]
        if any(count for _label, count in failures):
            self.console.print()
            self.console.print("[bold yellow]Skipped work[/bold yellow]")
            for label, count in failures:
                if count:
                    self.console.print(f"  {label + ':':<24s}[yellow]{count}[/yellow]")

        self.console.print()
        self.console.print(f"  [dim]API requests: {run.wiki_requests} wiki, {run.llm_calls} model[/dim]")
        if run.duration:
            self.console.print(f"  [dim]Total time: {run.duration:.1f}s[/dim]")
