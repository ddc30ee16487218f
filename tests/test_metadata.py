"""Tests for chunked file metadata retrieval."""

import httpx
import pytest

from category_diffusion.config import WikiConfig
from category_diffusion.extractor import MetadataFetcher
from category_diffusion.models import FileRecord
from category_diffusion.wiki import WikiClient
from fakes import API_URL, FakeWiki


def page(description: str, *categories: str) -> tuple[str, list[str]]:
    text = "{{Information\n|description=" + description + "\n|date=2020\n}}"
    return text, list(categories)


@pytest.mark.asyncio
async def test_builds_records(wiki_config):
    wiki = FakeWiki(pages={
        "File:X.jpg": page("A '''stone''' bridge", "Category:Bridges", "Category:Stone bridges"),
        "File:Y.jpg": ("No template here, just words", []),
    })

    async with WikiClient(wiki_config, transport=wiki.transport()) as client:
        records = await MetadataFetcher(client).fetch_metadata(["File:X.jpg", "File:Y.jpg"])

    assert records == {
        "File:X.jpg": FileRecord(
            title="File:X.jpg",
            description="A stone bridge",
            categories=["Bridges", "Stone bridges"],
        ),
        "File:Y.jpg": FileRecord(
            title="File:Y.jpg", description="No template here, just words", categories=[]
        ),
    }
    request = wiki.requests[0]
    assert request["titles"] == "File:X.jpg|File:Y.jpg"
    assert request["prop"] == "revisions|categories"
    assert request["rvslots"] == "main"


@pytest.mark.asyncio
async def test_requests_in_chunks():
    titles = [f"File:{i}.jpg" for i in range(120)]
    wiki = FakeWiki(pages={t: page(t) for t in titles})
    config = WikiConfig(api_url=API_URL, delay_seconds=0.0)

    async with WikiClient(config, transport=wiki.transport()) as client:
        records = await MetadataFetcher(client, chunk_size=50).fetch_metadata(titles)

    assert [len(r["titles"].split("|")) for r in wiki.requests] == [50, 50, 20]
    assert list(records) == titles


@pytest.mark.asyncio
async def test_failed_chunk_is_omitted(wiki_config):
    wiki = FakeWiki(
        pages={t: page(t) for t in ["File:A.jpg", "File:B.jpg", "File:C.jpg", "File:D.jpg"]},
        fail=("File:C.jpg",),
    )

    async with WikiClient(wiki_config, transport=wiki.transport()) as client:
        fetcher = MetadataFetcher(client, chunk_size=2)
        records = await fetcher.fetch_metadata(
            ["File:A.jpg", "File:B.jpg", "File:C.jpg", "File:D.jpg"]
        )

    assert list(records) == ["File:A.jpg", "File:B.jpg"]
    assert fetcher.failed_chunks == 1
    assert len(wiki.requests) == 2


@pytest.mark.asyncio
async def test_missing_pages_skipped(wiki_config):
    wiki = FakeWiki(pages={"File:A.jpg": page("Present")})

    async with WikiClient(wiki_config, transport=wiki.transport()) as client:
        records = await MetadataFetcher(client).fetch_metadata(["File:A.jpg", "File:Gone.jpg"])

    assert list(records) == ["File:A.jpg"]


@pytest.mark.asyncio
async def test_input_order_kept(wiki_config):
    titles = ["File:C.jpg", "File:A.jpg", "File:B.jpg"]
    wiki = FakeWiki(pages={t: page(t) for t in titles})

    async with WikiClient(wiki_config, transport=wiki.transport()) as client:
        records = await MetadataFetcher(client).fetch_metadata(titles)

    assert list(records) == titles


@pytest.mark.asyncio
async def test_reports_chunk_progress(wiki_config):
    wiki = FakeWiki(pages={"File:A.jpg": page("a"), "File:B.jpg": page("b")})
    messages: list[str] = []

    async with WikiClient(wiki_config, transport=wiki.transport()) as client:
        await MetadataFetcher(client, chunk_size=1, progress=messages.append).fetch_metadata(
            ["File:A.jpg", "File:B.jpg"]
        )

    assert messages == [
        "Fetching file metadata: batch 1/2…",
        "Fetching file metadata: batch 2/2…",
    ]


@pytest.mark.asyncio
async def test_legacy_revision_format(wiki_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"query": {"pages": {"7": {
            "pageid": 7,
            "title": "File:Old.jpg",
            "revisions": [{"*": "An old-style revision body"}],
        }}}})

    async with WikiClient(wiki_config, transport=httpx.MockTransport(handler)) as client:
        records = await MetadataFetcher(client).fetch_metadata(["File:Old.jpg"])

    assert records["File:Old.jpg"].description == "An old-style revision body"


@pytest.mark.asyncio
async def test_malformed_chunk_is_omitted(wiki_config):
    wiki = FakeWiki(pages={"File:A.jpg": page("Fine")})

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["titles"] == "File:B.jpg":
            page_entry = {"pageid": 7, "title": "File:B.jpg", "categories": ["Category:Oops"]}
            return httpx.Response(200, json={"query": {"pages": {"7": page_entry}}})
        return wiki.handler(request)

    async with WikiClient(wiki_config, transport=httpx.MockTransport(handler)) as client:
        fetcher = MetadataFetcher(client, chunk_size=1)
        records = await fetcher.fetch_metadata(["File:A.jpg", "File:B.jpg"])

    assert list(records) == ["File:A.jpg"]
    assert fetcher.failed_chunks == 1
