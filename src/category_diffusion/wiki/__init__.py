"""MediaWiki API access."""

from category_diffusion.wiki.client import MemberKind, MemberPage, WikiClient, WikiPage
from category_diffusion.wiki.lister import PagedLister

__all__ = [
    "MemberKind",
    "MemberPage",
    "PagedLister",
    "WikiClient",
    "WikiPage",
]
