"""Wiki page title helpers."""

import re

CATEGORY_PREFIX = "Category:"
FILE_PREFIX = "File:"

_WHITESPACE_RE = re.compile(r"\s+")


def strip_prefix(title: str, prefix: str) -> str:
    """Remove a namespace prefix such as ``Category:`` if present."""
    if title.startswith(prefix):
        return title[len(prefix):]
    return title


def ensure_prefix(title: str, prefix: str) -> str:
    """Add a namespace prefix if the title does not already carry it."""
    if title.startswith(prefix):
        return title
    return prefix + title


def normalize_category_title(raw: str) -> str:
    """Normalize a category title into the form used as crawl root and cache key.

    Underscores become spaces (page names in URLs use underscores), whitespace
    is collapsed and the ``Category:`` prefix is added when missing. An
    existing prefix is recognized case-insensitively and rewritten to the
    canonical spelling. Letter case of the name itself is left alone.
    """
    title = _WHITESPACE_RE.sub(" ", raw.replace("_", " ")).strip()
    if title.lower().startswith(CATEGORY_PREFIX.lower()):
        title = title[len(CATEGORY_PREFIX):].strip()
    if not title:
        raise ValueError(f"Empty category title: {raw!r}")
    return CATEGORY_PREFIX + title
