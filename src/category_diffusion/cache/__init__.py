"""Persistence of analysis results and review progress."""

from category_diffusion.cache.result_cache import ResultCache
from category_diffusion.cache.reviewed import ReviewedStore, next_unreviewed

__all__ = [
    "ResultCache",
    "ReviewedStore",
    "next_unreviewed",
]
