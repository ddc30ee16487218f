"""Subcategory tree discovery."""

from category_diffusion.discovery.crawler import TreeCrawler

__all__ = [
    "TreeCrawler",
]
