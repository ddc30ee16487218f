"""Tests for the bounded subcategory crawl."""

import pytest

from category_diffusion.discovery import TreeCrawler
from category_diffusion.errors import WikiAPIError
from category_diffusion.wiki import MemberKind

ROOT = "Category:Test"


class FakeLister:
    """Serves direct subcategories from a dict; exception values are raised."""

    def __init__(self, tree: dict):
        self.tree = tree
        self.expanded: list[str] = []

    async def list_titles(self, parent_title, kind, page_cap=None):
        assert kind == MemberKind.SUBCATEGORY
        self.expanded.append(parent_title)
        children = self.tree.get(parent_title, [])
        if isinstance(children, Exception):
            raise children
        return list(children)


def chain(length: int) -> dict:
    """ROOT -> Category:N1 -> Category:N2 -> ..."""
    names = [ROOT] + [f"Category:N{i}" for i in range(1, length + 1)]
    return {parent: [child] for parent, child in zip(names, names[1:])}


@pytest.mark.asyncio
async def test_single_level_is_sorted():
    lister = FakeLister({ROOT: ["Category:B", "Category:A"]})

    result = await TreeCrawler(lister, max_depth=5, max_nodes=2000).crawl(ROOT)

    assert result == ["Category:A", "Category:B"]


@pytest.mark.asyncio
async def test_deduplicates_and_excludes_root():
    lister = FakeLister({
        ROOT: ["Category:A", "Category:B"],
        "Category:A": ["Category:C", ROOT, "Category:B"],
        "Category:B": ["Category:C", "Category:A"],
        "Category:C": [ROOT],
    })

    result = await TreeCrawler(lister, max_depth=5, max_nodes=2000).crawl(ROOT)

    assert result == ["Category:A", "Category:B", "Category:C"]
    # every category is expanded at most once
    assert sorted(lister.expanded) == sorted(set(lister.expanded))


@pytest.mark.asyncio
async def test_depth_bound():
    lister = FakeLister(chain(6))

    result = await TreeCrawler(lister, max_depth=2, max_nodes=2000).crawl(ROOT)

    assert result == ["Category:N1", "Category:N2"]
    assert lister.expanded == [ROOT, "Category:N1"]


@pytest.mark.asyncio
async def test_levels_expanded_in_frontier_order():
    lister = FakeLister({
        ROOT: ["Category:Z", "Category:A"],
        "Category:Z": ["Category:Z1"],
        "Category:A": ["Category:A1"],
    })

    await TreeCrawler(lister, max_depth=5, max_nodes=2000).crawl(ROOT)

    assert lister.expanded[:3] == [ROOT, "Category:Z", "Category:A"]
    assert lister.expanded[3:] == ["Category:Z1", "Category:A1"]


@pytest.mark.asyncio
async def test_node_cap_stops_immediately():
    lister = FakeLister({
        ROOT: ["Category:D", "Category:C", "Category:B", "Category:A"],
        "Category:D": ["Category:E"],
    })
    crawler = TreeCrawler(lister, max_depth=5, max_nodes=2)

    result = await crawler.crawl(ROOT)

    assert result == ["Category:C", "Category:D"]
    assert crawler.capped is True
    assert lister.expanded == [ROOT]


@pytest.mark.asyncio
async def test_node_cap_never_exceeded_across_levels():
    tree = {ROOT: [f"Category:L1-{i}" for i in range(5)]}
    for i in range(5):
        tree[f"Category:L1-{i}"] = [f"Category:L2-{i}-{j}" for j in range(5)]

    result = await TreeCrawler(FakeLister(tree), max_depth=5, max_nodes=12).crawl(ROOT)

    assert len(result) == 12
    assert len(set(result)) == 12


@pytest.mark.asyncio
async def test_failed_expansion_is_skipped():
    lister = FakeLister({
        ROOT: ["Category:A", "Category:B"],
        "Category:A": WikiAPIError("HTTP 500"),
        "Category:B": ["Category:C"],
    })
    crawler = TreeCrawler(lister, max_depth=5, max_nodes=2000)

    result = await crawler.crawl(ROOT)

    assert result == ["Category:A", "Category:B", "Category:C"]
    assert crawler.failed == ["Category:A"]


@pytest.mark.asyncio
async def test_root_failure_yields_empty_result():
    lister = FakeLister({ROOT: WikiAPIError("timeout")})
    crawler = TreeCrawler(lister, max_depth=5, max_nodes=2000)

    assert await crawler.crawl(ROOT) == []
    assert crawler.failed == [ROOT]


@pytest.mark.asyncio
async def test_unexpected_errors_propagate():
    lister = FakeLister({ROOT: RuntimeError("bug")})

    with pytest.raises(RuntimeError):
        await TreeCrawler(lister, max_depth=5, max_nodes=2000).crawl(ROOT)


@pytest.mark.asyncio
async def test_reports_progress():
    messages: list[str] = []
    lister = FakeLister({ROOT: ["Category:A"]})

    await TreeCrawler(lister, max_depth=5, max_nodes=2000, progress=messages.append).crawl(ROOT)

    assert messages[0] == "Depth 1: expanding 1/1 (0 subcats so far)…"
    assert "Depth 1 done: 1 subcategories found…" in messages
