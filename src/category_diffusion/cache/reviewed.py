"""Per-category record of files a reviewer has already dealt with."""

import json
import logging
from collections.abc import Iterable, Mapping

import aiofiles  # type: ignore[import-untyped]

from category_diffusion.config import CacheConfig
from category_diffusion.cache.result_cache import storage_path

logger = logging.getLogger(__name__)


class ReviewedStore:
    """Set of reviewed file titles, stored apart from the suggestion cache.

    Marking a file reviewed never touches its suggestions.
    """

    SUFFIX = "reviewed"

    def __init__(self, config: CacheConfig, category: str):
        self.config = config
        self.category = category
        self.path = storage_path(config, category, self.SUFFIX)
        self.reviewed: set[str] = set()

    async def load(self) -> set[str]:
        self.reviewed = set()
        if not self.path.exists():
            return self.reviewed
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable reviewed-state file %s", self.path, exc_info=True)
            return self.reviewed
        if isinstance(data, dict):
            self.reviewed = {title for title, flag in data.items() if flag}
        return self.reviewed

    async def save(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(json.dumps({title: True for title in sorted(self.reviewed)}))
        except OSError as e:
            logger.warning("Could not write reviewed-state file %s: %s", self.path, e)
            return False
        return True

    async def mark(self, file_title: str) -> None:
        self.reviewed.add(file_title)
        await self.save()

    def is_reviewed(self, file_title: str) -> bool:
        return file_title in self.reviewed

    async def clear(self) -> None:
        self.reviewed = set()
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def next_unreviewed(
    suggestions: Mapping[str, list[str]],
    reviewed: Iterable[str],
    after: str | None = None,
) -> str | None:
    """Next file (wrapping around) with suggestions that is not yet reviewed.

    The search starts right after ``after`` when it is a known title,
    otherwise at the first file.
    """
    titles = list(suggestions)
    if not titles:
        return None
    done = set(reviewed)
    start = titles.index(after) + 1 if after in suggestions else 0
    for offset in range(len(titles)):
        title = titles[(start + offset) % len(titles)]
        if title != after and title not in done and suggestions[title]:
            return title
    return None
