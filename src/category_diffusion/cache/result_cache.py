"""JSON file cache of finished analyses, one document per category."""

import logging
import re
from pathlib import Path

import aiofiles  # type: ignore[import-untyped]

from category_diffusion.config import CacheConfig
from category_diffusion.models import CacheEntry

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*\s]')


def storage_path(config: CacheConfig, category: str, suffix: str) -> Path:
    """Path of the document stored under ``<prefix><category>-<suffix>``."""
    key = f"{config.prefix}{category}-{suffix}"
    return config.resolved_directory / (_UNSAFE_CHARS_RE.sub("_", key) + ".json")


class ResultCache:
    """Persist and reload ``{subcategories, fileMetadata, suggestions}``.

    Storage problems never propagate: ``load`` reports a miss and ``save``
    reports failure through its return value.
    """

    SUFFIX = "suggestions"

    def __init__(self, config: CacheConfig):
        self.config = config

    def path_for(self, category: str) -> Path:
        return storage_path(self.config, category, self.SUFFIX)

    async def load(self, category: str) -> CacheEntry | None:
        """Return the cached entry for ``category``, or None."""
        if not self.config.enabled:
            return None
        path = self.path_for(category)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
            return CacheEntry.model_validate_json(raw)
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable cache file %s", path, exc_info=True)
            return None

    async def save(self, category: str, entry: CacheEntry) -> bool:
        """Write ``entry``; returns False when it could not be stored."""
        if not self.config.enabled:
            return False
        path = self.path_for(category)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(entry.model_dump_json(by_alias=True, indent=2))
        except OSError as e:
            logger.warning("Could not write cache file %s: %s", path, e)
            return False
        return True

    async def clear(self, category: str) -> bool:
        """Delete the cached entry; returns True if one existed."""
        path = self.path_for(category)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove cache file %s: %s", path, e)
            return False
        return True
