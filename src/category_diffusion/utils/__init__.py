"""Utility functions and classes."""

from category_diffusion.utils.rate_limiter import RateLimiter
from category_diffusion.utils.titles import (
    CATEGORY_PREFIX,
    FILE_PREFIX,
    ensure_prefix,
    normalize_category_title,
    strip_prefix,
)

__all__ = [
    "RateLimiter",
    "CATEGORY_PREFIX",
    "FILE_PREFIX",
    "ensure_prefix",
    "normalize_category_title",
    "strip_prefix",
]
