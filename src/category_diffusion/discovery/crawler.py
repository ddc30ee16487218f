"""Bounded breadth-first crawl of a category's subcategory tree."""

import logging

from category_diffusion.errors import WikiAPIError
from category_diffusion.models import ProgressCallback
from category_diffusion.wiki.client import MemberKind
from category_diffusion.wiki.lister import PagedLister

logger = logging.getLogger(__name__)


class TreeCrawler:
    """Discover subcategories level by level, one category at a time.

    The crawl stops after ``max_depth`` levels, when a level yields nothing
    new, or as soon as ``max_nodes`` distinct subcategories have been seen.
    A category whose expansion fails is logged and skipped.
    """

    def __init__(
        self,
        lister: PagedLister,
        max_depth: int,
        max_nodes: int,
        progress: ProgressCallback | None = None,
    ):
        self.lister = lister
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self._progress = progress
        self.failed: list[str] = []
        self.capped = False

    async def crawl(self, root: str) -> list[str]:
        """Return the sorted, deduplicated subcategory titles below ``root``."""
        self.failed = []
        self.capped = False
        seen: set[str] = set()
        current_level = [root]
        depth = 0

        while True:
            depth += 1
            if depth > self.max_depth or not current_level:
                break

            next_level: list[str] = []
            total = len(current_level)
            for idx, category in enumerate(current_level, start=1):
                self._report(
                    f"Depth {depth}: expanding {idx}/{total} ({len(seen)} subcats so far)…"
                )
                try:
                    children = await self.lister.list_titles(category, MemberKind.SUBCATEGORY)
                except WikiAPIError as e:
                    logger.warning("Failed to expand %s: %s", category, e)
                    self.failed.append(category)
                    continue

                for child in children:
                    if child in seen or child == root:
                        continue
                    seen.add(child)
                    next_level.append(child)
                    if len(seen) >= self.max_nodes:
                        logger.info(
                            "Subcategory cap of %d reached at depth %d", self.max_nodes, depth
                        )
                        self.capped = True
                        return sorted(seen)

            self._report(f"Depth {depth} done: {len(seen)} subcategories found…")
            current_level = next_level

        return sorted(seen)

    def _report(self, message: str) -> None:
        if self._progress:
            self._progress(message)
