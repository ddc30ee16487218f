"""Suggest specific subcategories for files in an overfull wiki category."""

__version__ = "0.1.0"
