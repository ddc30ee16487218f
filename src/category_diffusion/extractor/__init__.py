"""File metadata extraction."""

from category_diffusion.extractor.description import extract_description
from category_diffusion.extractor.metadata import MetadataFetcher

__all__ = [
    "MetadataFetcher",
    "extract_description",
]
